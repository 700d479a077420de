import asyncio
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from bananabot.errors import UpstreamError
from bananabot.load_secrets import steam_api_key, steamladder_api_key

STEAM_COMMUNITY_URL = "https://steamcommunity.com"
STEAM_API_URL = "https://api.steampowered.com"
STEAM_OPENID_URL = f"{STEAM_COMMUNITY_URL}/openid/login"
STEAMLADDER_API_URL = "https://steamladder.com/api/v1"

OPENID_NS = "http://specs.openid.net/auth/2.0"
OPENID_IDENTIFIER_SELECT = f"{OPENID_NS}/identifier_select"

DEFAULT_TIMEOUT = 10.0
RANK_TIMEOUT = 3.0

logging.basicConfig(level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)


def build_async_client(
    timeout: float = DEFAULT_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Create an AsyncClient with the timeout every Steam call must respect.

    Args:
        timeout (float): Connect, read, write and pool timeout in seconds; each step is bounded on its own
        transport (httpx.AsyncBaseTransport, optional): Replaces the network transport

    Returns:
        httpx.AsyncClient: Client to be closed by the caller
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        transport=transport,
        headers={"User-Agent": "BananaBot/1.0"},
    )


class SteamWebClient:
    """Steam Community and Steam Web API calls used by the site."""

    def __init__(self, client: httpx.AsyncClient, api_key: str = steam_api_key):
        self.client = client
        self.api_key = api_key

    async def _get_json(self, url: str, params: dict) -> dict:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logging.error(f"Steam request to {url} failed: {e!r}")
            raise UpstreamError("Failed to reach Steam") from e
        except ValueError as e:
            logging.error(f"Steam returned invalid JSON for {url}: {e}")
            raise UpstreamError("Steam returned an invalid response") from e

    def build_login_url(self, return_to: str, realm: str) -> str:
        params = {
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": return_to,
            "openid.realm": realm,
            "openid.identity": OPENID_IDENTIFIER_SELECT,
            "openid.claimed_id": OPENID_IDENTIFIER_SELECT,
        }
        return f"{STEAM_OPENID_URL}?{urlencode(params)}"

    async def verify_openid_assertion(self, params: dict) -> bool:
        """Ask Steam whether the assertion it redirected back with is genuine

        Args:
            params (dict): openid.* query parameters of the return request

        Returns:
            bool: True when Steam answers is_valid:true
        """
        payload = dict(params)
        payload["openid.mode"] = "check_authentication"
        try:
            response = await self.client.post(STEAM_OPENID_URL, data=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logging.error(f"Steam OpenID verification failed: {e!r}")
            return False
        return "is_valid:true" in response.text

    async def get_player_summary(self, account_id: str) -> Optional[dict]:
        data = await self._get_json(
            f"{STEAM_API_URL}/ISteamUser/GetPlayerSummaries/v2/",
            {"key": self.api_key, "steamids": account_id},
        )
        players = _response_body(data).get("players")
        if not isinstance(players, list) or len(players) == 0 or not isinstance(players[0], dict):
            return None
        return players[0]

    async def get_steam_level(self, account_id: str) -> int:
        data = await self._get_json(
            f"{STEAM_API_URL}/IPlayerService/GetSteamLevel/v1/",
            {"key": self.api_key, "steamid": account_id},
        )
        level = _response_body(data).get("player_level")
        if isinstance(level, bool) or not isinstance(level, int):
            return 0
        return level

    async def get_price_overview(self, appid: int, currency: int, market_hash_name: str) -> dict:
        return await self._get_json(
            f"{STEAM_COMMUNITY_URL}/market/priceoverview/",
            {"appid": appid, "currency": currency, "market_hash_name": market_hash_name},
        )


class SteamLadderClient:
    """World rank lookups against the SteamLadder API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = steamladder_api_key,
        base_url: str = STEAMLADDER_API_URL,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def fetch_world_rank(self, account_id: str, timeout: float = RANK_TIMEOUT) -> int:
        """Fetch the worldwide XP rank of a profile

        Args:
            account_id (str): SteamID64 of the profile
            timeout (float): Wall-clock budget of the whole call in seconds, body included

        Raises:
            UpstreamError: Transport failure, timeout, error status or a missing/malformed rank

        Returns:
            int: Positive world rank
        """
        url = f"{self.base_url}/profile/{account_id}/"
        try:
            # httpx bounds each read separately, a slow body could outlive it
            response = await asyncio.wait_for(
                self.client.get(
                    url,
                    headers={"Authorization": f"Token {self.api_key}"},
                    timeout=httpx.Timeout(timeout),
                ),
                timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamError("SteamLadder request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"SteamLadder request failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamError("SteamLadder returned invalid JSON") from e

        rank = parse_world_rank(data)
        if rank is None:
            raise UpstreamError("SteamLadder response has no usable rank")
        return rank


def _response_body(data) -> dict:
    """The "response" object of a Steam Web API answer, or {} when it is malformed."""
    if not isinstance(data, dict):
        return {}
    body = data.get("response")
    if not isinstance(body, dict):
        return {}
    return body


def parse_world_rank(data) -> Optional[int]:
    """Extract ladder_rank.worldwide_xp, falling back to a top-level rank field."""
    if not isinstance(data, dict):
        return None
    ladder_rank = data.get("ladder_rank")
    if isinstance(ladder_rank, dict) and "worldwide_xp" in ladder_rank:
        rank = ladder_rank["worldwide_xp"]
    else:
        rank = data.get("rank")
    # bool is an int subclass
    if isinstance(rank, bool) or not isinstance(rank, int) or rank <= 0:
        return None
    return rank
