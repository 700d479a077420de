"""Tests for steam_client.py against slow and malformed remote answers."""

import asyncio
import time

import httpx
import pytest

from bananabot.errors import UpstreamError
from bananabot.services.steam_client import SteamLadderClient, SteamWebClient

from conftest import ACCOUNT_ID

RANK_BODY = b'{"ladder_rank": {"worldwide_xp": 4821}}   '


async def drip_body(reader, writer):
    """Answer with a valid rank, sending the body a few bytes at a time."""
    await reader.readuntil(b"\r\n\r\n")
    writer.write(
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: " + str(len(RANK_BODY)).encode() + b"\r\n\r\n"
    )
    try:
        for start in range(0, len(RANK_BODY), 4):
            writer.write(RANK_BODY[start:start + 4])
            await writer.drain()
            await asyncio.sleep(0.1)
    except ConnectionError:
        pass
    finally:
        writer.close()


def test_slow_body_is_cut_off_at_the_call_budget():
    async def scenario():
        server = await asyncio.start_server(drip_body, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        client = httpx.AsyncClient(trust_env=False)
        ladder = SteamLadderClient(client, api_key="k", base_url=f"http://127.0.0.1:{port}/api/v1")
        started = time.monotonic()
        try:
            with pytest.raises(UpstreamError) as excinfo:
                await ladder.fetch_world_rank(ACCOUNT_ID, timeout=0.5)
            return time.monotonic() - started, excinfo.value
        finally:
            await client.aclose()
            server.close()

    elapsed, error = asyncio.run(scenario())

    # every single read is well under 0.5s, the whole body takes about 1s
    assert elapsed < 0.9
    assert error.message == "SteamLadder request timed out"


def test_slow_mock_transport_is_cut_off():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json={"ladder_rank": {"worldwide_xp": 4821}})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await SteamLadderClient(client, api_key="k").fetch_world_rank(ACCOUNT_ID, timeout=0.2)

    with pytest.raises(UpstreamError):
        asyncio.run(scenario())


def _web_client(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    return SteamWebClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), api_key="k")


@pytest.mark.parametrize(
    "payload",
    [[], ["response"], {"response": []}, {"response": {"players": "none"}}, {"response": {"players": [1]}}],
)
def test_malformed_player_summary_is_none(payload):
    assert asyncio.run(_web_client(payload).get_player_summary(ACCOUNT_ID)) is None


@pytest.mark.parametrize(
    "payload",
    [[], "42", {"response": None}, {"response": {"player_level": "42"}}, {"response": {"player_level": True}}],
)
def test_malformed_steam_level_is_zero(payload):
    assert asyncio.run(_web_client(payload).get_steam_level(ACCOUNT_ID)) == 0


def test_steam_level():
    assert asyncio.run(_web_client({"response": {"player_level": 42}}).get_steam_level(ACCOUNT_ID)) == 42
