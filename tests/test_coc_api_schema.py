"""Tests for parsing API payloads into schema objects."""
from datetime import datetime, timezone

from coc_api_schema.base import from_json, parse_api_time
from coc_api_schema.clans import Clan
from coc_api_schema.clanwars import Attack, ClanWar
from coc_api_schema.currentwar_leaguegroup import CWLGroup
from coc_api_schema.players import Player

from conftest import OUR_TAG, THEIR_TAG, player_json, sample_war_payload


def test_unknown_keys_are_ignored():
    payload = sample_war_payload()
    payload["battleModifier"] = "none"
    payload["clan"]["members"][0]["attacks"][0]["attackTime"] = 123

    war = from_json(ClanWar, payload)

    assert war.clan.tag == OUR_TAG
    assert isinstance(war.clan.members[0].attacks[0], Attack)


def test_members_are_sorted_by_map_position():
    war = from_json(ClanWar, sample_war_payload())

    assert [member.mapPosition for member in war.clan.members] == [1, 2, 3]


def test_member_without_attacks_has_empty_list():
    war = from_json(ClanWar, sample_war_payload())
    charlie = war.clan.members[2]

    assert charlie.tag == "#A3"
    assert charlie.attacks == []
    assert charlie.bestOpponentAttack is None


def test_oriented_to_swaps_sides():
    war = from_json(ClanWar, sample_war_payload(swap=True))

    oriented = war.oriented_to(OUR_TAG)

    assert (oriented.clan.tag, oriented.opponent.tag) == (OUR_TAG, THEIR_TAG)
    assert war.oriented_to(THEIR_TAG) is war


def test_attacks_per_member_defaults_by_war_type():
    regular = from_json(ClanWar, sample_war_payload())
    league = from_json(ClanWar, sample_war_payload(league=True))

    assert regular.attacks_per_member == 2
    assert league.attacks_per_member == 1
    assert league.is_league_war and not regular.is_league_war


def test_parse_api_time():
    assert parse_api_time("20240101T120000.000Z") == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert parse_api_time("") is None


def test_league_group_rounds():
    group = from_json(CWLGroup, {"state": "inWar", "season": "2024-01", "clans": [
        {"tag": OUR_TAG, "name": "Our Clan", "clanLevel": 10, "members": [
            {"tag": "#A1", "name": "Alpha", "townHallLevel": 14}]}],
        "rounds": [{"warTags": ["#W1", "#W2"]}, {"warTags": ["#0", "#0"]}]})

    assert group.clans[0].members[0].townHallLevel == 14
    assert [round.has_started for round in group.rounds] == [True, False]


def test_player_without_clan_or_league():
    player = from_json(Player, player_json("#P1", "Solo", 9, {"Barbarian King": 20}))

    assert player.clan is None
    assert player.league_name == "Unranked"
    assert player.heroes[0].name == "Barbarian King"


def test_clan_war_league_name():
    clan = from_json(Clan, {"tag": OUR_TAG, "name": "Our Clan", "warLeague": {"id": 1, "name": "Crystal League I"},
                            "memberList": [{"tag": "#A1", "name": "Alpha", "role": "leader"}]})

    assert clan.war_league_name == "Crystal League I"
    assert clan.memberList[0].role == "leader"
