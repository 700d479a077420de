"""Shared fixtures for the BananaBot test suite."""

import os
import tempfile
from pathlib import Path

import httpx
import pytest

# The engine is created at import time, so point it at a scratch database first
_DB_DIR = Path(tempfile.mkdtemp(prefix="bananabot-tests-"))
DB_PATH = _DB_DIR / "test.sqlite3"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["SITE_URL"] = "http://testserver"

from fastapi.testclient import TestClient  # noqa: E402

from bananabot.dependencies import get_rank_lookup_cache, get_steam_web_client  # noqa: E402
from bananabot.main import app  # noqa: E402
from bananabot.models.session_models import IdentityModel  # noqa: E402
from bananabot.services.rank_cache import RankLookupCache  # noqa: E402
from bananabot.services.steam_client import (  # noqa: E402
    STEAM_OPENID_URL,
    SteamLadderClient,
    SteamWebClient,
)

ACCOUNT_ID = "76561198000000000"
OTHER_ACCOUNT_ID = "76561198000000001"
NUMERIC_PROFILE_URL = f"https://steamcommunity.com/profiles/{ACCOUNT_ID}/"
CUSTOM_PROFILE_URL = "https://steamcommunity.com/id/bananafan/"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSteam:
    """Scripted answers for every Steam and SteamLadder endpoint."""

    def __init__(self):
        self.rank = 4821
        self.rank_error = None  # exception raised by the ladder endpoint
        self.level = 42
        self.profile_url = NUMERIC_PROFILE_URL
        self.assertion_valid = True
        self.lowest_price = "$1.85"
        self.market_status = 200
        self.ladder_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if "steamladder.com" in url:
            self.ladder_calls += 1
            if self.rank_error is not None:
                raise self.rank_error
            return httpx.Response(200, json={"ladder_rank": {"worldwide_xp": self.rank}})
        if url.startswith(STEAM_OPENID_URL):
            verdict = "true" if self.assertion_valid else "false"
            return httpx.Response(200, text=f"ns:http://specs.openid.net/auth/2.0\nis_valid:{verdict}\n")
        if "GetPlayerSummaries" in url:
            steamid = request.url.params["steamids"]
            return httpx.Response(200, json={"response": {"players": [{
                "steamid": steamid,
                "personaname": "Banana Fan",
                "profileurl": self.profile_url,
                "avatarfull": "https://avatars.example/full.jpg",
            }]}})
        if "GetSteamLevel" in url:
            return httpx.Response(200, json={"response": {"player_level": self.level}})
        if "priceoverview" in url:
            if self.market_status != 200:
                return httpx.Response(self.market_status, json={"success": False})
            return httpx.Response(200, json={"success": True, "lowest_price": self.lowest_price})
        return httpx.Response(404)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_steam():
    return FakeSteam()


@pytest.fixture
def mock_http_client(fake_steam):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_steam.handler))


@pytest.fixture
def identity():
    return IdentityModel(
        account_id=ACCOUNT_ID,
        display_name="Banana Fan",
        profile_url=NUMERIC_PROFILE_URL,
    )


@pytest.fixture
def custom_identity():
    return IdentityModel(
        account_id=ACCOUNT_ID,
        display_name="Banana Fan",
        profile_url=CUSTOM_PROFILE_URL,
    )


@pytest.fixture
def client(mock_http_client, clock):
    """TestClient wired to the scripted Steam services (no network)."""
    steam_web_client = SteamWebClient(mock_http_client, api_key="test-key")
    rank_cache = RankLookupCache(SteamLadderClient(mock_http_client, api_key="test-key"), clock=clock)
    app.dependency_overrides[get_steam_web_client] = lambda: steam_web_client
    app.dependency_overrides[get_rank_lookup_cache] = lambda: rank_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def openid_return_params(account_id: str = ACCOUNT_ID) -> dict:
    claimed_id = f"https://steamcommunity.com/openid/id/{account_id}"
    return {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": STEAM_OPENID_URL,
        "openid.claimed_id": claimed_id,
        "openid.identity": claimed_id,
        "openid.return_to": "http://testserver/auth/steam/return",
        "openid.response_nonce": "2026-10-19T00:00:00Zabcdef",
        "openid.assoc_handle": "1234567890",
        "openid.signed": "signed,op_endpoint,claimed_id,identity,return_to,response_nonce,assoc_handle",
        "openid.sig": "c2lnbmF0dXJl",
    }


@pytest.fixture
def logged_in_client(client):
    """Client that went through the Steam return step with a valid assertion."""
    response = client.get("/auth/steam/return", params=openid_return_params(), follow_redirects=False)
    assert response.status_code == 302
    assert "bananabot_session" in response.cookies
    return client
