from coc_api_schema.clans import Clan
from coc_api_schema.clanwars import ClanWar
from coc_api_schema.labels import Label
from coc_api_schema.leagues import League, WarLeague
from coc_api_schema.locations import Location
from coc_api_schema.players import Player
from war_roster_analyzer import (Hero, HeroSnapshot, MemberAttackView, MemberDefenseView, OpenTarget,
                                 RosterMember)

from datetime import datetime, timezone
from itertools import zip_longest

import pandas as pd


STAR = "⭐"
HERO_COLUMNS = ["BK", "AQ", "GW", "RC"]


def stars_text(stars: int) -> str:
    return STAR * max(0, min(stars, 3))


def time_left(end_time: datetime | None, now: datetime | None = None) -> str:
    """
    Describe how long until a war starts or ends.

    A war ends 24 hours after it starts, so more than 24 hours left means the war is still in preparation.
    """

    if end_time is None:
        return ""

    now = now or datetime.now(timezone.utc)
    ends_in = (end_time - now).total_seconds()
    hours = int(ends_in / 3600)
    minutes = int(ends_in / 60) - hours * 60

    def units(value: int, unit: str) -> str:
        return f" {value} {unit}" if value == 1 else f" {value} {unit}s"

    if hours >= 24:
        text = "War starts in"
        if hours > 24:
            text += units(hours - 24, "hour")
        if minutes > 0:
            text += units(minutes, "minute")
        return text

    if hours > 0 or minutes > 0:
        text = "War ends in"
        if hours > 0:
            text += units(hours, "hour")
        if minutes > 0:
            text += units(minutes, "minute")
        return text

    return "War has ended"


def render_table(frame: pd.DataFrame, title: str = "", caption: str = "") -> str:
    lines = []
    if title:
        lines.append(title)
    lines.append(frame.to_string() if not frame.empty else "(no rows)")
    if caption:
        lines.append(caption)
    return "\n".join(lines)


def _hero_levels(heroes: HeroSnapshot) -> list[int]:
    # Same order as HERO_COLUMNS.
    return [heroes.level(hero) for hero in Hero]


# ============================== War tables ==============================
def scoreboard_frame(war: ClanWar) -> pd.DataFrame:
    total_stars = war.teamSize * 3
    total_attacks = war.teamSize * war.attacks_per_member
    rows = {}
    for side in (war.clan, war.opponent):
        rows[side.name] = [f"{side.stars}/{total_stars}",
                           f"{side.destructionPercentage:.1f}",
                           f"{side.attacks}/{total_attacks}"]
    return pd.DataFrame(rows, index=["stars", "%", "attacks"])


def attack_frame(views: list[MemberAttackView], league_war: bool) -> pd.DataFrame:
    """
    Build the attack table for our side: one attack per member in a war league war, two in a regular war.
    """

    # In a CWL war, you get one attack; in a regular war, you get two attacks.
    slots = 1 if league_war else 2
    columns = ["#", "Name", "TH"]
    for slot in range(1, slots + 1):
        suffix = "" if slots == 1 else f" {slot}"
        columns.extend([f"Stars{suffix}", f"%{suffix}", f"Target TH{suffix}", f"Target #{suffix}",
                        f"Target{suffix}"])

    rows = []
    for view in views:
        row = [view.map_position, view.name, view.townhall_level]
        for slot in range(slots):
            if slot < len(view.attacks):
                attack = view.attacks[slot]
                row.extend([stars_text(attack.stars), f"{attack.destruction_percentage}%",
                            attack.target_townhall_level or "", attack.target_map_position or "",
                            attack.target_name])
            else:
                row.extend(["", "", "", "", ""])
        rows.append(row)

    return pd.DataFrame(rows, columns=columns).set_index("#")


def defense_frame(views: list[MemberDefenseView]) -> pd.DataFrame:
    rows = []
    for view in views:
        row = [view.map_position, view.name, view.townhall_level]
        if view.was_attacked:
            row.extend([stars_text(view.stars), f"{view.destruction_percentage}%",
                        view.attacker_townhall_level or "", view.attacker_name])
        else:
            row.extend(["", "", "", ""])
        rows.append(row)

    return pd.DataFrame(rows, columns=["#", "Name", "TH", "Stars", "%", "Attacker TH", "Attacker"]).set_index("#")


def targets_frame(targets: list[OpenTarget]) -> pd.DataFrame:
    rows = [[target.map_position, target.name, target.townhall_level, stars_text(target.stars),
             f"{target.destruction_percentage}%"] for target in targets]
    return pd.DataFrame(rows, columns=["#", "Name", "TH", "Stars", "%"]).set_index("#")


def roster_frame(our_roster: list[RosterMember], their_roster: list[RosterMember]) -> pd.DataFrame:
    """
    Build the war map: both sides' members side by side, line by line in map position order.
    """

    blank = ["", "", "", "", "", ""]
    rows = []
    for line, (ours, theirs) in enumerate(zip_longest(our_roster, their_roster), start=1):
        row = [line]
        row.extend([ours.name, ours.townhall_level, *_hero_levels(ours.heroes)] if ours else blank)
        row.extend([theirs.name, theirs.townhall_level, *_hero_levels(theirs.heroes)] if theirs else blank)
        rows.append(row)

    columns = ["#", "Name", "TH", *HERO_COLUMNS,
               "Opponent", "Opp TH", *[f"Opp {hero}" for hero in HERO_COLUMNS]]
    return pd.DataFrame(rows, columns=columns).set_index("#")


def clan_roster_frame(roster: list[RosterMember]) -> pd.DataFrame:
    rows = [[member.position, member.name, member.townhall_level, *_hero_levels(member.heroes), member.league]
            for member in roster]
    return pd.DataFrame(rows, columns=["#", "Name", "TH", *HERO_COLUMNS, "League"]).set_index("#")


def war_log_frame(wars: list[ClanWar]) -> pd.DataFrame:
    rows = []
    for war in wars:
        # War league entries in the log have no opponent.
        if not war.opponent.name:
            continue

        # Get the percentages to two digit precision.
        rows.append([war.opponent.name, war.opponent.tag, war.teamSize, war.result,
                     war.clan.stars, int(war.clan.destructionPercentage * 100) / 100,
                     war.opponent.stars, int(war.opponent.destructionPercentage * 100) / 100])

    return pd.DataFrame(rows, columns=["Opponent", "Opp Tag", "Size", "Result", "Stars", "Percent",
                                       "OppStars", "OppPercent"])


# ============================== Other tables ==============================
def clan_frame(clans: list[Clan]) -> pd.DataFrame:
    rows = [[clan.name, clan.tag, clan.members, clan.warWins, clan.warLosses, clan.warTies, clan.clanLevel,
             clan.war_league_name] for clan in clans]
    return pd.DataFrame(rows, columns=["Name", "Tag", "Members", "Wins", "Losses", "Draws", "Level", "League"])


def player_frame(player: Player) -> pd.DataFrame:
    heroes = HeroSnapshot.from_troops(player.heroes)
    clan_name = player.clan.name if player.clan else ""
    row = [player.name, player.tag, player.townHallLevel, player.expLevel, player.trophies, player.warStars,
           *_hero_levels(heroes), player.league_name, clan_name]
    return pd.DataFrame([row], columns=["Name", "Tag", "TH", "Exp", "Trophies", "War Stars", *HERO_COLUMNS,
                                        "League", "Clan"])


def leagues_frame(leagues: list[League] | list[WarLeague]) -> pd.DataFrame:
    return pd.DataFrame([[league.id, league.name] for league in leagues], columns=["ID", "Name"])


def locations_frame(locations: list[Location]) -> pd.DataFrame:
    rows = [[location.id, location.name, location.countryCode, location.isCountry] for location in locations]
    return pd.DataFrame(rows, columns=["ID", "Name", "Country Code", "Country"])


def labels_frame(labels: list[Label]) -> pd.DataFrame:
    return pd.DataFrame([[label.id, label.name] for label in labels], columns=["ID", "Name"])
