from dataclasses import dataclass, field
from typing import List, Optional

from coc_api_schema.base import BadgeURLs, from_json


COC_NO_WAR_TAG = "#0"


@dataclass
class GroupClanMember:
    tag: str
    name: str
    townHallLevel: int = 0


@dataclass
class GroupClan:
    tag: str
    name: str
    clanLevel: int = 0
    badgeUrls: Optional[BadgeURLs] = None
    members: List[GroupClanMember] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.badgeUrls, dict):
            self.badgeUrls = from_json(BadgeURLs, self.badgeUrls)
        self.members = [from_json(GroupClanMember, member) for member in self.members or []]


@dataclass
class RoundWarTags:
    warTags: List[str] = field(default_factory=list)

    @property
    def has_started(self) -> bool:
        # The API fills a round that has not started yet with "#0" placeholders.
        return bool(self.warTags) and self.warTags[0] != COC_NO_WAR_TAG


@dataclass
class CWLGroup:
    state: str = ""
    season: str = ""
    tag: str = ""
    clans: List[GroupClan] = field(default_factory=list)
    rounds: List[RoundWarTags] = field(default_factory=list)

    def __post_init__(self):
        self.clans = [from_json(GroupClan, clan) for clan in self.clans or []]
        self.rounds = [from_json(RoundWarTags, round) for round in self.rounds or []]
