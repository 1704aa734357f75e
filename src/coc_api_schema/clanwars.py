from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

from coc_api_schema.base import BadgeURLs, from_json, parse_api_time


@dataclass
class Attack:
    attackerTag: str = ""
    defenderTag: str = ""
    stars: int = 0
    destructionPercentage: int = 0
    order: int = 0
    duration: int = 0


@dataclass
class WarClanMember:
    tag: str
    name: str
    townhallLevel: int = 0
    mapPosition: int = 0
    opponentAttacks: int = 0
    bestOpponentAttack: Optional[Attack] = None
    attacks: Optional[List[Attack]] = None

    def __post_init__(self):
        # Only initialize the "attacks" attribute if this member attacked.
        self.attacks = [attack if isinstance(attack, Attack) else from_json(Attack, attack)
                        for attack in self.attacks or []]

        # Only initialize the "bestOpponentAttack" attribute if this member
        # was attacked.
        if isinstance(self.bestOpponentAttack, dict):
            self.bestOpponentAttack = from_json(Attack, self.bestOpponentAttack)


@dataclass
class WarClan:
    tag: str = ""
    name: str = ""
    badgeUrls: Optional[BadgeURLs] = None
    clanLevel: int = 0
    attacks: int = 0
    stars: int = 0
    destructionPercentage: float = 0.0
    expEarned: int = 0
    members: List[WarClanMember] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.badgeUrls, dict):
            self.badgeUrls = from_json(BadgeURLs, self.badgeUrls)
        self.members = [member if isinstance(member, WarClanMember) else from_json(WarClanMember, member)
                        for member in self.members or []]
        self.members.sort(key=lambda member: member.mapPosition)


@dataclass
class ClanWar:
    """
    A clan war as returned by the current war, war log and war league war endpoints.

    The raw API response does not guarantee which side is the clan we asked about,
    so use oriented_to() before treating "clan" as our side.
    """

    state: str = ""
    teamSize: int = 0
    attacksPerMember: int = 0
    preparationStartTime: str = ""
    startTime: str = ""
    endTime: str = ""
    warStartTime: str = ""
    result: str = ""
    clan: Optional[WarClan] = None
    opponent: Optional[WarClan] = None

    def __post_init__(self):
        self.clan = self.clan if isinstance(self.clan, WarClan) else from_json(WarClan, self.clan or {})
        self.opponent = self.opponent if isinstance(self.opponent, WarClan) else from_json(WarClan, self.opponent or {})

    @property
    def is_league_war(self) -> bool:
        # Only war league wars carry a "warStartTime".
        return bool(self.warStartTime)

    @property
    def end_time(self) -> datetime | None:
        return parse_api_time(self.endTime)

    @property
    def attacks_per_member(self) -> int:
        if self.attacksPerMember:
            return self.attacksPerMember
        return 1 if self.is_league_war else 2

    def has_clan(self, clan_tag: str) -> bool:
        return clan_tag in (self.clan.tag, self.opponent.tag)

    def oriented_to(self, home_clan_tag: str) -> "ClanWar":
        """
        Return this war with the home clan as the "clan" attribute and the other side as "opponent".
        """

        # Make sure our home clan is the "clan" attribute.
        if self.opponent.tag == home_clan_tag and self.clan.tag != home_clan_tag:
            return replace(self, clan=self.opponent, opponent=self.clan)

        return self
