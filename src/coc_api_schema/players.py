from dataclasses import dataclass, field
from typing import List, Optional

from coc_api_schema.base import BadgeURLs, IconURLs, from_json


@dataclass
class Troop:
    name: str
    level: int = 0
    maxLevel: int = 0
    village: str = ""


@dataclass
class PlayerLeague:
    id: int = 0
    name: str = ""
    iconUrls: Optional[IconURLs] = None

    def __post_init__(self):
        if isinstance(self.iconUrls, dict):
            self.iconUrls = from_json(IconURLs, self.iconUrls)


@dataclass
class PlayerClan:
    tag: str = ""
    name: str = ""
    clanLevel: int = 0
    badgeUrls: Optional[BadgeURLs] = None

    def __post_init__(self):
        if isinstance(self.badgeUrls, dict):
            self.badgeUrls = from_json(BadgeURLs, self.badgeUrls)


@dataclass
class Player:
    tag: str
    name: str
    townHallLevel: int = 0
    expLevel: int = 0
    trophies: int = 0
    bestTrophies: int = 0
    warStars: int = 0
    attackWins: int = 0
    defenseWins: int = 0
    role: str = ""
    donations: int = 0
    donationsReceived: int = 0
    clan: Optional[PlayerClan] = None
    league: Optional[PlayerLeague] = None
    heroes: List[Troop] = field(default_factory=list)
    troops: List[Troop] = field(default_factory=list)
    spells: List[Troop] = field(default_factory=list)

    def __post_init__(self):
        # Players outside a clan or below the first league have no "clan" / "league" object.
        if isinstance(self.clan, dict):
            self.clan = from_json(PlayerClan, self.clan)
        if isinstance(self.league, dict):
            self.league = from_json(PlayerLeague, self.league)

        self.heroes = [from_json(Troop, hero) for hero in self.heroes or []]
        self.troops = [from_json(Troop, troop) for troop in self.troops or []]
        self.spells = [from_json(Troop, spell) for spell in self.spells or []]

    @property
    def league_name(self) -> str:
        return self.league.name if self.league and self.league.name else "Unranked"
