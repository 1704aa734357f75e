from dataclasses import dataclass, field
from typing import List, Optional

from coc_api_schema.base import BadgeURLs, from_json
from coc_api_schema.players import PlayerLeague


@dataclass
class ClanMember:
    tag: str
    name: str
    role: str = ""
    expLevel: int = 0
    townHallLevel: int = 0
    clanRank: int = 0
    trophies: int = 0
    donations: int = 0
    donationsReceived: int = 0
    league: Optional[PlayerLeague] = None

    def __post_init__(self):
        if isinstance(self.league, dict):
            self.league = from_json(PlayerLeague, self.league)


@dataclass
class ClanWarLeague:
    id: int = 0
    name: str = ""


@dataclass
class Clan:
    tag: str
    name: str
    type: str = ""
    description: str = ""
    clanLevel: int = 0
    clanPoints: int = 0
    members: int = 0
    warFrequency: str = ""
    warWins: int = 0
    warLosses: int = 0
    warTies: int = 0
    warWinStreak: int = 0
    isWarLogPublic: bool = False
    badgeUrls: Optional[BadgeURLs] = None
    warLeague: Optional[ClanWarLeague] = None
    memberList: List[ClanMember] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.badgeUrls, dict):
            self.badgeUrls = from_json(BadgeURLs, self.badgeUrls)
        if isinstance(self.warLeague, dict):
            self.warLeague = from_json(ClanWarLeague, self.warLeague)
        self.memberList = [from_json(ClanMember, member) for member in self.memberList or []]

    @property
    def war_league_name(self) -> str:
        return self.warLeague.name if self.warLeague else ""
