"""Shared payload builders and a fake API client for the test suite."""
import pytest

from coc_api_schema.base import from_json
from coc_api_schema.clans import Clan, ClanMember
from coc_api_schema.clanwars import ClanWar
from coc_api_schema.currentwar_leaguegroup import CWLGroup
from coc_api_schema.players import Player


OUR_TAG = "#OURS"
THEIR_TAG = "#THEIRS"


def attack_json(attacker, defender, stars, destruction, order):
    return {"attackerTag": attacker, "defenderTag": defender, "stars": stars,
            "destructionPercentage": destruction, "order": order, "duration": 120}


def member_json(tag, name, townhall, position, attacks=None, best=None):
    member = {"tag": tag, "name": name, "townhallLevel": townhall, "mapPosition": position,
              "opponentAttacks": 1 if best else 0}
    if attacks:
        member["attacks"] = attacks
    if best:
        member["bestOpponentAttack"] = best
    return member


def side_json(tag, name, members, stars=0, destruction=0.0, attacks=0):
    return {"tag": tag, "name": name, "clanLevel": 10, "attacks": attacks, "stars": stars,
            "destructionPercentage": destruction, "badgeUrls": {"small": "s", "medium": "m", "large": "l"},
            "members": members}


def war_json(clan, opponent, state="inWar", team_size=3, league=False, end_time="20240101T120000.000Z"):
    war = {"state": state, "teamSize": team_size, "preparationStartTime": "20231231T110000.000Z",
           "startTime": "20231231T120000.000Z", "endTime": end_time, "clan": clan, "opponent": opponent}
    if league:
        war["warStartTime"] = "20231231T120000.000Z"
    else:
        war["attacksPerMember"] = 2
    return war


def player_json(tag, name, townhall=14, heroes=None, league=None):
    player = {"tag": tag, "name": name, "townHallLevel": townhall, "expLevel": 200,
              "heroes": [{"name": hero, "level": level, "maxLevel": 100, "village": "home"}
                         for hero, level in (heroes or {}).items()]}
    if league:
        player["league"] = {"id": 29000022, "name": league}
    return player


def sample_war_payload(league=False, swap=False):
    """
    Our clan has three members: Alpha attacked twice, Bravo once (at an unknown tag), Charlie not at all.
    """

    ours = side_json(OUR_TAG, "Our Clan", [
        # Deliberately out of map position order.
        member_json("#A2", "Bravo", 13, 2, attacks=[attack_json("#A2", "#GHOST", 1, 40, 3)]),
        member_json("#A1", "Alpha", 14, 1,
                    attacks=[attack_json("#A1", "#B2", 3, 100, 1), attack_json("#A1", "#B1", 2, 88, 4)],
                    best=attack_json("#B1", "#A1", 2, 75, 2)),
        member_json("#A3", "Charlie", 12, 3),
    ], stars=6, destruction=62.5, attacks=3)
    theirs = side_json(THEIR_TAG, "Their Clan", [
        member_json("#B1", "Yankee", 14, 1, attacks=[attack_json("#B1", "#A1", 2, 75, 2)],
                    best=attack_json("#A1", "#B1", 2, 88, 4)),
        member_json("#B2", "Zulu", 13, 2, best=attack_json("#A1", "#B2", 3, 100, 1)),
        member_json("#B3", "Xray", 12, 3),
    ], stars=2, destruction=25.0, attacks=1)

    if swap:
        return war_json(theirs, ours, league=league)
    return war_json(ours, theirs, league=league)


class FakeClient:
    """In-memory stand-in for CocClient that records every call it receives."""

    def __init__(self, group=None, league_wars=None, current_war=None, players=None, clans=None,
                 members=None, errors=None):
        self.group = group
        self.league_wars = league_wars or {}
        self.current_war = current_war
        self.players = players or {}
        self.clans = clans or []
        self.members = members or []
        self.errors = errors or {}
        self.calls = []

    def _record(self, name, arg):
        self.calls.append((name, arg))
        if (name, arg) in self.errors:
            raise self.errors[(name, arg)]

    def get_war_league_group(self, clan_tag):
        self._record("group", clan_tag)
        return from_json(CWLGroup, self.group)

    def get_war_league_war(self, war_tag):
        self._record("league_war", war_tag)
        return from_json(ClanWar, self.league_wars[war_tag])

    def get_current_war(self, clan_tag):
        self._record("current_war", clan_tag)
        return from_json(ClanWar, self.current_war)

    def get_player(self, player_tag):
        self._record("player", player_tag)
        return from_json(Player, self.players[player_tag])

    def get_clan_members(self, clan_tag):
        self._record("members", clan_tag)
        return [from_json(ClanMember, member) for member in self.members]

    def search_clans(self, name="", **filters):
        self._record("search", name)
        return [from_json(Clan, clan) for clan in self.clans]


@pytest.fixture
def war_payload():
    return sample_war_payload()


@pytest.fixture
def war(war_payload):
    return from_json(ClanWar, war_payload)


@pytest.fixture
def players():
    return {
        "#A1": player_json("#A1", "Alpha", 14, {"Barbarian King": 80, "Archer Queen": 85,
                                                "Grand Warden": 55, "Royal Champion": 30}, league="Legend League"),
        "#A2": player_json("#A2", "Bravo", 13, {"Barbarian King": 70, "Archer Queen": 70}),
        "#A3": player_json("#A3", "Charlie", 12),
        "#B1": player_json("#B1", "Yankee", 14, {"Royal Champion": 25}),
        "#B2": player_json("#B2", "Zulu", 13, {"Grand Warden": 40}),
        "#B3": player_json("#B3", "Xray", 12),
    }
