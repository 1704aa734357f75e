from coc_api_schema.base import from_json
from coc_api_schema.clans import Clan, ClanMember
from coc_api_schema.clanwars import ClanWar
from coc_api_schema.currentwar_leaguegroup import CWLGroup
from coc_api_schema.labels import Label
from coc_api_schema.leagues import League, WarLeague
from coc_api_schema.locations import Location
from coc_api_schema.players import Player

import logging
import urllib.parse

import requests


logger = logging.getLogger(__name__)

COC_BASE_API_URL = "https://api.clashofclans.com/v1"
DEFAULT_TIMEOUT = 30


# =========================== Exceptions ===========================
class CocApiError(Exception):
    """
    Raised when a payload could not be retrieved from, or parsed out of, the Clash of Clans API.
    """

    def __init__(self, message: str, status_code: int | None = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class ClanLookupError(Exception):
    """
    Raised when a clan name does not match exactly one clan.
    """

    def __init__(self, name: str, candidates: list[Clan]):
        self.name = name
        self.candidates = candidates

        if not candidates:
            message = f"no clan matching {name} was found"
        else:
            lines = [f"found {len(candidates)} clans matching {name}"]
            lines.extend(f"   {clan.name:<20} {clan.tag}" for clan in candidates)
            message = "\n".join(lines)
        super().__init__(message)


# =========================== Client ===========================
def encode_tag(tag: str) -> str:
    # Tags start with "#", which must be percent-encoded in the path.
    return urllib.parse.quote(tag, safe="")


def paging_params(limit: int = 0, after: str = "", before: str = "") -> dict:
    params = {}
    if limit > 0:
        params["limit"] = limit
    if after:
        params["after"] = after
    if before:
        params["before"] = before
    return params


class CocClient:
    """
    Client for the Clash of Clans REST API.

    The API token is given to the client explicitly and only lives on its session headers.
    """

    def __init__(self, token: str, base_url: str = COC_BASE_API_URL, timeout: float = DEFAULT_TIMEOUT,
                 session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        })

    def _get(self, path: str, params: dict | None = None):
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            response = self.session.get(url, params=params or None, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise CocApiError(f"request to {url} failed: {e}") from e

        # The API reports errors as {"reason": ..., "message": ...}.
        if response.status_code != 200:
            reason, message = response.reason, ""
            try:
                error_json = response.json()
                reason = error_json.get("reason", reason)
                message = error_json.get("message", "")
            except ValueError:
                pass
            logger.error(f"Request to {url} failed, statusCode={response.status_code}, reason={reason}")
            detail = f"status={response.status_code}, reason={reason}"
            if message:
                detail = f"{detail}, message={message}"
            raise CocApiError(detail, status_code=response.status_code, reason=reason)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Failed to parse the JSON response from {url}")
            raise CocApiError(f"malformed JSON response from {url}") from e

    def _get_object(self, cls, path: str, params: dict | None = None):
        payload = self._get(path, params)
        try:
            return from_json(cls, payload)
        except (TypeError, AttributeError) as e:
            raise CocApiError(f"unexpected {cls.__name__} payload from {path}: {e}") from e

    def _get_items(self, cls, path: str, params: dict | None = None) -> list:
        payload = self._get(path, params)
        try:
            return [from_json(cls, item) for item in payload.get("items", [])]
        except (TypeError, AttributeError) as e:
            raise CocApiError(f"unexpected {cls.__name__} list payload from {path}: {e}") from e

    # ----------------------------- Clans -----------------------------
    def search_clans(self, name: str = "", war_frequency: str = "", location_id: int = 0,
                     min_members: int = 0, max_members: int = 0, min_clan_points: int = 0,
                     min_clan_level: int = 0, label_ids: list[str] | None = None,
                     limit: int = 0, after: str = "", before: str = "") -> list[Clan]:
        """
        Return the clans matching the provided filters.

        Args:
            name (str): Search clans by name.
            war_frequency (str): Filter by clan war frequency.
            location_id (int): Filter by clan location identifier.
            min_members (int): Filter by minimum number of clan members.
            max_members (int): Filter by maximum number of clan members.
            min_clan_points (int): Filter by minimum amount of clan points.
            min_clan_level (int): Filter by minimum clan level.
            label_ids (list[str]): Label IDs to use for filtering results.
            limit, after, before: Paging parameters, passed through verbatim.

        Returns:
            list[Clan]: The matching clans.
        """

        params = {}
        if name:
            params["name"] = name
        if war_frequency:
            params["warFrequency"] = war_frequency
        if location_id > 0:
            params["locationId"] = location_id
        if min_members > 0:
            params["minMembers"] = min_members
        if max_members > 0:
            params["maxMembers"] = max_members
        if min_clan_points > 0:
            params["minClanPoints"] = min_clan_points
        if min_clan_level > 0:
            params["minClanLevel"] = min_clan_level
        if label_ids:
            params["labelIds"] = ",".join(label_ids)
        params.update(paging_params(limit, after, before))

        return self._get_items(Clan, "/clans", params)

    def get_clan(self, clan_tag: str) -> Clan:
        return self._get_object(Clan, f"/clans/{encode_tag(clan_tag)}")

    def get_clan_members(self, clan_tag: str, limit: int = 0, after: str = "", before: str = "") -> list[ClanMember]:
        return self._get_items(ClanMember, f"/clans/{encode_tag(clan_tag)}/members",
                               paging_params(limit, after, before))

    def get_war_log(self, clan_tag: str, limit: int = 0, after: str = "", before: str = "") -> list[ClanWar]:
        return self._get_items(ClanWar, f"/clans/{encode_tag(clan_tag)}/warlog",
                               paging_params(limit, after, before))

    def get_current_war(self, clan_tag: str) -> ClanWar:
        return self._get_object(ClanWar, f"/clans/{encode_tag(clan_tag)}/currentwar")

    def get_war_league_group(self, clan_tag: str) -> CWLGroup:
        return self._get_object(CWLGroup, f"/clans/{encode_tag(clan_tag)}/currentwar/leaguegroup")

    def get_war_league_war(self, war_tag: str) -> ClanWar:
        return self._get_object(ClanWar, f"/clanwarleagues/wars/{encode_tag(war_tag)}")

    # ----------------------------- Players -----------------------------
    def get_player(self, player_tag: str) -> Player:
        return self._get_object(Player, f"/players/{encode_tag(player_tag)}")

    # ----------------------------- Leagues / locations / labels -----------------------------
    def list_leagues(self, limit: int = 0, after: str = "", before: str = "") -> list[League]:
        return self._get_items(League, "/leagues", paging_params(limit, after, before))

    def list_war_leagues(self, limit: int = 0, after: str = "", before: str = "") -> list[WarLeague]:
        return self._get_items(WarLeague, "/warleagues", paging_params(limit, after, before))

    def list_locations(self, limit: int = 0, after: str = "", before: str = "") -> list[Location]:
        return self._get_items(Location, "/locations", paging_params(limit, after, before))

    def list_clan_labels(self, limit: int = 0, after: str = "", before: str = "") -> list[Label]:
        return self._get_items(Label, "/labels/clans", paging_params(limit, after, before))

    def list_player_labels(self, limit: int = 0, after: str = "", before: str = "") -> list[Label]:
        return self._get_items(Label, "/labels/players", paging_params(limit, after, before))


def find_clan_by_name(client: CocClient, name: str) -> Clan:
    """
    Return the one clan whose name matches the search.

    Args:
        client (CocClient): The API client.
        name (str): The clan name to search for.

    Raises:
        ClanLookupError: No clan or more than one clan matched.
    """

    clans = client.search_clans(name=name)
    if len(clans) != 1:
        raise ClanLookupError(name, clans)
    return clans[0]
