"""Shared clients and services handed to routers through FastAPI's Depends.

Tests replace these with app.dependency_overrides.
"""

from bananabot.authentication.steam_authentication import SteamAuthentication
from bananabot.services.rank_cache import RankLookupCache
from bananabot.services.steam_client import (
    SteamLadderClient,
    SteamWebClient,
    build_async_client,
)

http_client = build_async_client()
steam_auth = SteamAuthentication()
steam_web_client = SteamWebClient(http_client)
rank_lookup_cache = RankLookupCache(SteamLadderClient(http_client))


def get_steam_web_client() -> SteamWebClient:
    return steam_web_client


def get_rank_lookup_cache() -> RankLookupCache:
    return rank_lookup_cache
