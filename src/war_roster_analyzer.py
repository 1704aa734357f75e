from coc_api_schema.clans import ClanMember
from coc_api_schema.clanwars import ClanWar, WarClan, WarClanMember
from coc_api_schema.currentwar_leaguegroup import COC_NO_WAR_TAG, RoundWarTags
from coc_api_schema.players import Player, Troop

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Callable, Iterable


logger = logging.getLogger(__name__)

# A war league group never has more than 7 rounds.
MAX_CWL_ROUNDS = 7


# =========================== Enumerations / Classes ===========================
class Hero(Enum):
    """
    The heroes tracked for a player, keyed by their name in the API's hero list.
    """

    BARBARIAN_KING = "Barbarian King"
    ARCHER_QUEEN = "Archer Queen"
    GRAND_WARDEN = "Grand Warden"
    ROYAL_CHAMPION = "Royal Champion"

    @classmethod
    def from_name(cls, name: str) -> "Hero | None":
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class HeroSnapshot:
    barbarian_king: int = 0
    archer_queen: int = 0
    grand_warden: int = 0
    royal_champion: int = 0

    @classmethod
    def from_troops(cls, heroes: Iterable[Troop]) -> "HeroSnapshot":
        """
        Fold a player's hero list into the four tracked hero levels.

        Heroes that are missing from the list (not unlocked yet, or no data) stay at level 0.
        """

        levels = {}
        for hero in heroes:
            kind = Hero.from_name(hero.name)
            if kind is not None:
                levels[kind] = hero.level

        return cls(barbarian_king=levels.get(Hero.BARBARIAN_KING, 0),
                   archer_queen=levels.get(Hero.ARCHER_QUEEN, 0),
                   grand_warden=levels.get(Hero.GRAND_WARDEN, 0),
                   royal_champion=levels.get(Hero.ROYAL_CHAMPION, 0))

    def level(self, hero: Hero) -> int:
        match hero:
            case Hero.BARBARIAN_KING:
                return self.barbarian_king
            case Hero.ARCHER_QUEEN:
                return self.archer_queen
            case Hero.GRAND_WARDEN:
                return self.grand_warden
            case Hero.ROYAL_CHAMPION:
                return self.royal_champion


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    townhall_level: int
    map_position: int
    clan_tag: str


@dataclass
class TagDirectory:
    """
    Lookup of war participants by player tag, covering both sides of a war.
    """

    entries: dict[str, DirectoryEntry] = field(default_factory=dict)

    @classmethod
    def build(cls, team_a: WarClan, team_b: WarClan) -> "TagDirectory":
        entries = {}
        for team in (team_a, team_b):
            for member in team.members:
                entries[member.tag] = DirectoryEntry(member.name, member.townhallLevel, member.mapPosition, team.tag)
        return cls(entries)

    def lookup(self, player_tag: str) -> DirectoryEntry | None:
        return self.entries.get(player_tag)

    def lookup_in(self, player_tag: str, clan_tag: str) -> DirectoryEntry | None:
        entry = self.entries.get(player_tag)
        if entry is None or entry.clan_tag != clan_tag:
            return None
        return entry

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class AttackTarget:
    target_name: str
    target_tag: str
    target_map_position: int
    target_townhall_level: int
    stars: int
    destruction_percentage: int
    order: int = 0


@dataclass
class MemberAttackView:
    tag: str
    name: str
    townhall_level: int
    map_position: int
    attacks: list[AttackTarget] = field(default_factory=list)


@dataclass
class MemberDefenseView:
    tag: str
    name: str
    townhall_level: int
    map_position: int
    attacker_name: str = ""
    attacker_tag: str = ""
    attacker_townhall_level: int = 0
    attacker_map_position: int = 0
    stars: int = 0
    destruction_percentage: int = 0

    @property
    def was_attacked(self) -> bool:
        return bool(self.attacker_tag)


@dataclass
class OpenTarget:
    tag: str
    name: str
    townhall_level: int
    map_position: int
    stars: int = 0
    destruction_percentage: int = 0


@dataclass
class RosterMember:
    position: int
    tag: str
    name: str
    townhall_level: int
    heroes: HeroSnapshot
    league: str = "Unranked"

    def ranking_key(self) -> tuple:
        # Town hall first, then heroes from the highest power tier down, then name.
        return (-self.townhall_level,
                -self.heroes.royal_champion,
                -self.heroes.grand_warden,
                -self.heroes.archer_queen,
                -self.heroes.barbarian_king,
                self.name.lower())


class WarNotFoundError(Exception):
    """
    Raised when no war for the clan could be selected.
    """


# ================================= Functions =================================
def clamp_round_index(round_number: int, round_count: int = MAX_CWL_ROUNDS) -> int:
    """
    Convert a 1-based round number to a 0-based round index, clamped to the rounds that exist.

    Out-of-range round numbers are clamped silently rather than reported.

    Args:
        round_number (int): The 1-based round number.
        round_count (int): The number of rounds in the group.

    Returns:
        int: The round index, between 0 and min(MAX_CWL_ROUNDS, round_count) - 1.
    """

    last_index = max(min(MAX_CWL_ROUNDS, round_count) - 1, 0)
    index = min(max(round_number - 1, 0), last_index)
    if index != round_number - 1:
        logger.debug(f"Round {round_number} is out of range, using round {index + 1}")
    return index


def resolve_round_index(rounds: list[RoundWarTags], requested_round: int = 0) -> int:
    """
    Return the index of the war league round to look at.

    When no round is requested, the current round is the last round that has started.

    Args:
        rounds (list[RoundWarTags]): The rounds of the war league group, in order.
        requested_round (int): The 1-based round requested by the user, or 0 for the current round.

    Returns:
        int: The 0-based round index.
    """

    round_number = requested_round
    if round_number == 0:
        for round_index, round in enumerate(rounds):
            round_number = round_index + 1

            # The war in this round has not started.
            if round.warTags and not round.has_started:
                round_number = round_index
                break

    return clamp_round_index(round_number, len(rounds))


def select_war(war_tags: list[str], clan_tag: str, fetch_war: Callable[[str], ClanWar],
               strict: bool = False) -> ClanWar:
    """
    Return the war from a war league round that the clan is fighting in, with the clan as "clan".

    War tags are fetched one at a time, in order, until one of them contains the clan.

    Args:
        war_tags (list[str]): The war tags of one round.
        clan_tag (str): The tag of our home clan.
        fetch_war (Callable[[str], ClanWar]): Retrieves a war by its war tag.
        strict (bool): Raise instead of falling back to the last fetched war when no war matches.

    Returns:
        ClanWar: The war, oriented to our home clan.
    """

    last_war = None
    for war_tag in war_tags:
        # Check if this war does not have a tag yet.
        if war_tag == COC_NO_WAR_TAG:
            continue

        last_war = fetch_war(war_tag)
        if last_war.has_clan(clan_tag):
            logger.debug(f"Found {clan_tag} in war {war_tag}")
            return last_war.oriented_to(clan_tag)

    if last_war is None:
        raise WarNotFoundError(f"no war has started for {clan_tag} in this round")

    if strict:
        raise WarNotFoundError(f"{clan_tag} is not in any war of this round")

    logger.warning(f"{clan_tag} is not in any war of this round, "
                   f"showing {last_war.clan.name} vs {last_war.opponent.name} instead")
    return last_war


def get_league_war(client, clan_tag: str, requested_round: int = 0, strict: bool = False) -> ClanWar:
    """
    Return the clan's war league war for the requested round (or the current round).
    """

    group = client.get_war_league_group(clan_tag)
    if not group.rounds:
        raise WarNotFoundError(f"the war league group for {clan_tag} has no rounds")

    round_index = resolve_round_index(group.rounds, requested_round)
    logger.info(f"Looking for {clan_tag} in war league round {round_index + 1}")
    return select_war(group.rounds[round_index].warTags, clan_tag, client.get_war_league_war, strict)


def get_current_war(client, clan_tag: str) -> ClanWar:
    """
    Return the clan's current regular war, with the clan as "clan".
    """

    war = client.get_current_war(clan_tag)
    if war.state == "notInWar":
        raise WarNotFoundError(f"{clan_tag} is not in a war")

    return war.oriented_to(clan_tag)


def map_attacks(our_team: WarClan, their_team: WarClan, directory: TagDirectory) -> list[MemberAttackView]:
    """
    Resolve the targets of every attack made by our side.

    Args:
        our_team (WarClan): Our side of the war.
        their_team (WarClan): The opposing side of the war.
        directory (TagDirectory): The directory built from both sides.

    Returns:
        list[MemberAttackView]: One view per member of our side, in map position order.
    """

    views = []
    for member in sorted(our_team.members, key=lambda member: member.mapPosition):
        view = MemberAttackView(member.tag, member.name, member.townhallLevel, member.mapPosition)
        for attack in member.attacks:
            target = directory.lookup_in(attack.defenderTag, their_team.tag)
            if target is None:
                logger.debug(f"Attack by {member.tag} on unknown defender {attack.defenderTag}")
                view.attacks.append(AttackTarget("", "", 0, 0, attack.stars, attack.destructionPercentage,
                                                 attack.order))
                continue

            view.attacks.append(AttackTarget(target.name, attack.defenderTag, target.map_position,
                                             target.townhall_level, attack.stars,
                                             attack.destructionPercentage, attack.order))
        views.append(view)

    return views


def map_defenses(our_team: WarClan, their_team: WarClan, directory: TagDirectory) -> list[MemberDefenseView]:
    """
    Resolve the attacker of the best attack each member of our side received.
    """

    views = []
    for member in sorted(our_team.members, key=lambda member: member.mapPosition):
        view = MemberDefenseView(member.tag, member.name, member.townhallLevel, member.mapPosition)

        # Check if this member has been attacked.
        defense = member.bestOpponentAttack
        if defense is not None and defense.attackerTag:
            view.attacker_tag = defense.attackerTag
            attacker = directory.lookup_in(defense.attackerTag, their_team.tag)
            if attacker is not None:
                view.attacker_name = attacker.name
                view.attacker_townhall_level = attacker.townhall_level
                view.attacker_map_position = attacker.map_position
            else:
                logger.debug(f"Defense of {member.tag} against unknown attacker {defense.attackerTag}")
            view.stars = defense.stars
            view.destruction_percentage = defense.destructionPercentage

        views.append(view)

    return views


def find_open_targets(their_team: WarClan) -> list[OpenTarget]:
    """
    Return the opposing bases that have not been three-starred yet, in map position order.
    """

    targets = []
    for member in sorted(their_team.members, key=lambda member: member.mapPosition):
        defense = member.bestOpponentAttack
        if defense is not None and defense.attackerTag:
            if defense.stars >= 3:
                continue
            targets.append(OpenTarget(member.tag, member.name, member.townhallLevel, member.mapPosition,
                                      defense.stars, defense.destructionPercentage))
        else:
            targets.append(OpenTarget(member.tag, member.name, member.townhallLevel, member.mapPosition))

    return targets


def _roster_member(position: int, player: Player, name: str, townhall_level: int) -> RosterMember:
    return RosterMember(position, player.tag, name, townhall_level,
                        HeroSnapshot.from_troops(player.heroes), player.league_name)


def merge_war_roster(team: WarClan, fetch_player: Callable[[str], Player]) -> list[RosterMember]:
    """
    Combine a war side's members with their hero levels, keeping the war's map position order.

    Args:
        team (WarClan): One side of the war.
        fetch_player (Callable[[str], Player]): Retrieves a player by tag, once per member.

    Returns:
        list[RosterMember]: One record per member, positioned by map position.
    """

    roster = []
    for member in team.members:
        player = fetch_player(member.tag)
        roster.append(_roster_member(member.mapPosition, player, member.name, member.townhallLevel))

    return roster


def rank_clan_members(members: list[ClanMember], fetch_player: Callable[[str], Player]) -> list[RosterMember]:
    """
    Rank clan members by town hall level, then hero levels, then name.

    Ties on town hall are broken by Royal Champion, Grand Warden, Archer Queen and Barbarian King
    levels (all descending), then by case-insensitive name (ascending).

    Args:
        members (list[ClanMember]): The members of the clan.
        fetch_player (Callable[[str], Player]): Retrieves a player by tag, once per member.

    Returns:
        list[RosterMember]: The ranked members, positioned by rank.
    """

    players = [fetch_player(member.tag) for member in members]
    roster = [_roster_member(0, player, player.name, player.townHallLevel) for player in players]
    roster.sort(key=RosterMember.ranking_key)

    for rank, roster_member in enumerate(roster, start=1):
        roster_member.position = rank

    return roster
