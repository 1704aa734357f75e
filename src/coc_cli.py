from coc_client import ClanLookupError, CocApiError, CocClient, find_clan_by_name
from coc_settings import Settings, load_settings
from sheets_publisher import publish_frame
from war_roster_analyzer import (TagDirectory, WarNotFoundError, find_open_targets, get_current_war,
                                 get_league_war, map_attacks, map_defenses, merge_war_roster,
                                 rank_clan_members)
import war_tables

import argparse
from dataclasses import dataclass
import logging
import sys

import gspread
import pandas as pd


logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


# =========================== Classes ===========================
class UsageError(Exception):
    """
    Raised when a command is missing an option it needs.
    """


@dataclass
class Table:
    frame: pd.DataFrame
    title: str = ""
    caption: str = ""


# =========================== Logging ===========================
def setup_logging(level_name: str, log_file: str = "") -> None:
    """
    Configure the root logger to write to stderr, or to the log file if one is given.
    """

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    level = LOG_LEVELS.get((level_name or "").lower())
    root_logger.setLevel(level if level is not None else logging.INFO)
    if level is None:
        logger.warning(f"Invalid log level {level_name!r}, using INFO")

    # requests logs every connection at debug level.
    logging.getLogger("urllib3").setLevel(max(root_logger.level, logging.INFO))


# =========================== Helpers ===========================
def resolve_clan_tag(args: argparse.Namespace, client: CocClient, settings: Settings) -> str:
    """
    Return the tag of the clan a command is about: --clan, else the clan found by --name, else COC_CLAN_TAG.
    """

    if args.clan:
        return args.clan
    if args.name:
        return find_clan_by_name(client, args.name).tag
    if settings.clan_tag:
        return settings.clan_tag
    raise UsageError("a clan is required: use --clan or --name, or set COC_CLAN_TAG")


def paging(args: argparse.Namespace) -> dict:
    return {"limit": args.limit, "after": args.after, "before": args.before}


def load_current_war(args, client, clan_tag):
    return get_current_war(client, clan_tag)


def load_league_war(args, client, clan_tag):
    return get_league_war(client, clan_tag, args.round, args.strict)


def war_title(war) -> str:
    return f"{war.clan.name} vs {war.opponent.name} ({war.opponent.tag})"


# =========================== Commands ===========================
def clan_list(args, client, settings) -> Table:
    filters = {
        "name": args.name,
        "war_frequency": args.frequency,
        "location_id": args.location,
        "min_members": args.minmembers,
        "max_members": args.maxmembers,
        "min_clan_points": args.minpoints,
        "min_clan_level": args.minlevel,
        "label_ids": args.label,
    }

    # Make sure at least one filter is specified.
    if not any(filters.values()):
        raise UsageError("clan ls needs at least one filter")

    clans = client.search_clans(**filters, **paging(args))
    return Table(war_tables.clan_frame(clans))


def clan_get(args, client, settings) -> Table:
    clan = client.get_clan(resolve_clan_tag(args, client, settings))
    return Table(war_tables.clan_frame([clan]))


def clan_members(args, client, settings) -> Table:
    clan_tag = resolve_clan_tag(args, client, settings)
    members = client.get_clan_members(clan_tag)
    roster = rank_clan_members(members, client.get_player)
    return Table(war_tables.clan_roster_frame(roster), title=clan_tag)


def war_list(args, client, settings) -> Table:
    wars = client.get_war_log(resolve_clan_tag(args, client, settings), **paging(args))
    return Table(war_tables.war_log_frame(wars))


def war_score(args, client, settings) -> Table:
    war = args.load_war(args, client, resolve_clan_tag(args, client, settings))
    return Table(war_tables.scoreboard_frame(war), caption=war_tables.time_left(war.end_time))


def war_attack(args, client, settings) -> Table:
    war = args.load_war(args, client, resolve_clan_tag(args, client, settings))
    directory = TagDirectory.build(war.clan, war.opponent)
    views = map_attacks(war.clan, war.opponent, directory)
    return Table(war_tables.attack_frame(views, war.is_league_war), title=war_title(war),
                 caption=war_tables.time_left(war.end_time))


def war_defend(args, client, settings) -> Table:
    war = args.load_war(args, client, resolve_clan_tag(args, client, settings))
    directory = TagDirectory.build(war.clan, war.opponent)
    views = map_defenses(war.clan, war.opponent, directory)
    return Table(war_tables.defense_frame(views), title=war_title(war),
                 caption=war_tables.time_left(war.end_time))


def war_roster(args, client, settings) -> Table:
    war = args.load_war(args, client, resolve_clan_tag(args, client, settings))
    our_roster = merge_war_roster(war.clan, client.get_player)
    their_roster = merge_war_roster(war.opponent, client.get_player)
    return Table(war_tables.roster_frame(our_roster, their_roster), title=war_title(war))


def war_targets(args, client, settings) -> Table:
    war = args.load_war(args, client, resolve_clan_tag(args, client, settings))
    targets = find_open_targets(war.opponent)
    return Table(war_tables.targets_frame(targets), title=war_title(war),
                 caption=war_tables.time_left(war.end_time))


def player_get(args, client, settings) -> Table:
    return Table(war_tables.player_frame(client.get_player(args.player)))


def leagues(args, client, settings) -> Table:
    if args.war:
        return Table(war_tables.leagues_frame(client.list_war_leagues(**paging(args))))
    return Table(war_tables.leagues_frame(client.list_leagues(**paging(args))))


def locations(args, client, settings) -> Table:
    return Table(war_tables.locations_frame(client.list_locations(**paging(args))))


def labels(args, client, settings) -> Table:
    if args.players:
        return Table(war_tables.labels_frame(client.list_player_labels(**paging(args))))
    return Table(war_tables.labels_frame(client.list_clan_labels(**paging(args))))


# =========================== Parser ===========================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coc", description="Clash of Clans CLI")
    parser.add_argument("-t", "--token", help="API token for the Clash of Clans REST server (default: COC_API_TOKEN)")
    parser.add_argument("--log", help="Log level: Error, Warn, Info or Debug (default: COC_LOG_LEVEL or Warn)")

    output_parent = argparse.ArgumentParser(add_help=False)
    output_parent.add_argument("--csv", metavar="PATH", help="Also write the table to a CSV file")
    output_parent.add_argument("--sheet", metavar="WORKSHEET",
                               help="Also publish the table to this worksheet of GOOGLE_SHEETS_SPREADSHEET_ID")

    clan_parent = argparse.ArgumentParser(add_help=False)
    clan_parent.add_argument("-c", "--clan", help="The tag of the clan")
    clan_parent.add_argument("-n", "--name", help="The name of the clan")

    paging_parent = argparse.ArgumentParser(add_help=False)
    paging_parent.add_argument("--limit", type=int, default=0, help="Limit the number of items returned")
    paging_parent.add_argument("--after", default="", help="Return only items that occur after this marker")
    paging_parent.add_argument("--before", default="", help="Return only items that occur before this marker")

    round_parent = argparse.ArgumentParser(add_help=False)
    round_parent.add_argument("-r", "--round", type=int, default=0, help="The CWL round (default: current round)")
    round_parent.add_argument("--strict", action="store_true",
                              help="Fail instead of showing another war when the clan is not found in the round")

    groups = parser.add_subparsers(dest="group", required=True)

    # clan
    clan_group = groups.add_parser("clan", help="Retrieve information about clans")
    clan_commands = clan_group.add_subparsers(dest="command", required=True)

    clan_ls = clan_commands.add_parser("ls", parents=[output_parent, paging_parent], help="Retrieve a list of clans")
    clan_ls.add_argument("-n", "--name", default="", help="Name of the clan to search for")
    clan_ls.add_argument("-f", "--frequency", default="", help="Frequency of the clan wars")
    clan_ls.add_argument("-l", "--location", type=int, default=0, help="Location identifier of the clan")
    clan_ls.add_argument("--minmembers", type=int, default=0, help="Minimum number of clan members")
    clan_ls.add_argument("--maxmembers", type=int, default=0, help="Maximum number of clan members")
    clan_ls.add_argument("--label", action="append", default=[], help="Label ID, one flag for each label")
    clan_ls.add_argument("--minpoints", type=int, default=0, help="Minimum amount of clan points")
    clan_ls.add_argument("--minlevel", type=int, default=0, help="Minimum clan level")
    clan_ls.set_defaults(handler=clan_list)

    clan_commands.add_parser("get", parents=[clan_parent, output_parent],
                             help="Get details about a clan").set_defaults(handler=clan_get)
    clan_commands.add_parser("members", parents=[clan_parent, output_parent],
                             help="Rank the members of a clan").set_defaults(handler=clan_members)

    # war / cwl
    war_group = groups.add_parser("war", help="Retrieve information about the wars of a clan")
    war_commands = war_group.add_subparsers(dest="command", required=True)
    war_commands.add_parser("ls", parents=[clan_parent, output_parent, paging_parent],
                            help="Retrieve the war log of a clan").set_defaults(handler=war_list)

    cwl_group = groups.add_parser("cwl", help="Retrieve information about a Clan War League")
    cwl_commands = cwl_group.add_subparsers(dest="command", required=True)

    war_views = {
        "attack": (war_attack, "Attacks made by the clan"),
        "defend": (war_defend, "Best attack against each member of the clan"),
        "roster": (war_roster, "Both rosters with hero levels"),
        "targets": (war_targets, "Opponent bases that have not been three-starred"),
    }
    for name, (handler, help_text) in {"current": (war_score, "Scoreboard of the war"), **war_views}.items():
        war_commands.add_parser(name, parents=[clan_parent, output_parent],
                                help=help_text).set_defaults(handler=handler, load_war=load_current_war)
    for name, (handler, help_text) in {"score": (war_score, "Scoreboard of the war"), **war_views}.items():
        cwl_commands.add_parser(name, parents=[clan_parent, output_parent, round_parent],
                                help=help_text).set_defaults(handler=handler, load_war=load_league_war)

    # player / leagues / locations / labels
    player_group = groups.add_parser("player", help="Retrieve information about players")
    player_commands = player_group.add_subparsers(dest="command", required=True)
    player_get_parser = player_commands.add_parser("get", parents=[output_parent], help="Get details about a player")
    player_get_parser.add_argument("-p", "--player", required=True, help="The tag of the player")
    player_get_parser.set_defaults(handler=player_get)

    leagues_parser = groups.add_parser("leagues", parents=[output_parent, paging_parent], help="List leagues")
    leagues_parser.add_argument("--war", action="store_true", help="List war leagues instead")
    leagues_parser.set_defaults(handler=leagues)

    groups.add_parser("locations", parents=[output_parent, paging_parent],
                      help="List locations").set_defaults(handler=locations)

    labels_parser = groups.add_parser("labels", parents=[output_parent, paging_parent], help="List clan labels")
    labels_parser.add_argument("--players", action="store_true", help="List player labels instead")
    labels_parser.set_defaults(handler=labels)

    return parser


# =========================== Main ===========================
def emit(table: Table, args: argparse.Namespace, settings: Settings) -> None:
    print(war_tables.render_table(table.frame, table.title, table.caption))

    if args.csv:
        table.frame.to_csv(args.csv, index=bool(table.frame.index.name))
        logger.info(f"Wrote {len(table.frame)} rows to {args.csv}")

    if args.sheet:
        if not settings.spreadsheet_id:
            raise UsageError("--sheet needs GOOGLE_SHEETS_SPREADSHEET_ID to be set")
        publish_frame(table.frame, settings.spreadsheet_id, args.sheet)


def main(argv: list[str] | None = None, client: CocClient | None = None) -> int:
    """
    Run one command of the Clash of Clans CLI and return the exit status.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings()
    except ValueError as e:
        parser.error(str(e))
    setup_logging(args.log or settings.log_level, settings.log_file)

    if client is None:
        token = args.token or settings.api_token
        if not token:
            parser.error("an API token is required: use --token or set COC_API_TOKEN")
        client = CocClient(token, settings.base_url, settings.timeout)

    try:
        table = args.handler(args, client, settings)
        emit(table, args, settings)
    except UsageError as e:
        parser.error(str(e))
    except (CocApiError, ClanLookupError, WarNotFoundError,
            gspread.exceptions.GSpreadException, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
