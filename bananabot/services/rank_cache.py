"""Session-scoped SteamLadder rank lookup.

A lookup runs in a fixed order: cache check, rate check, remote call, then
either the stale fallback or the cache write. The per-session state is passed
in explicitly and mutated in place; the caller persists it afterwards.
"""

import logging
import re
import time
from typing import Callable, Optional

from bananabot.errors import RateLimited, ServiceUnavailable, UpstreamError, ValidationError
from bananabot.models.dc_models import RankResponseModel, RankSourceModel
from bananabot.models.session_models import RankCacheEntryModel, RankSessionState
from bananabot.services.steam_client import RANK_TIMEOUT, SteamLadderClient

ACCOUNT_ID_PATTERN = re.compile(r"^7656119\d{10}$")
CACHE_TTL = 300.0
MIN_CALL_INTERVAL = 0.25
MAX_CACHE_ENTRIES = 100
STALE_WARNING = "SteamLadder is unavailable, showing a cached rank"

logging.basicConfig(level=logging.INFO)


def validate_account_id(account_id: str) -> str:
    if not isinstance(account_id, str) or ACCOUNT_ID_PATTERN.match(account_id) is None:
        raise ValidationError("Invalid Steam ID format. Expected a 17 digit SteamID64.")
    return account_id


class RankLookupCache:
    def __init__(
        self,
        ladder_client: SteamLadderClient,
        clock: Callable[[], float] = time.time,
        ttl: float = CACHE_TTL,
        min_interval: float = MIN_CALL_INTERVAL,
        timeout: float = RANK_TIMEOUT,
        max_entries: int = MAX_CACHE_ENTRIES,
    ):
        self.ladder_client = ladder_client
        self.clock = clock
        self.ttl = ttl
        self.min_interval = min_interval
        self.timeout = timeout
        self.max_entries = max_entries

    async def get_rank(
        self, account_id: str, state: RankSessionState, level: Optional[int] = None
    ) -> RankResponseModel:
        """Return the world rank of an account, from cache when possible

        Args:
            account_id (str): SteamID64 to look up
            state (RankSessionState): Cache entries and rate marker of the calling session
            level (int, optional): Current Steam level; a cached entry written at another level is not fresh

        Raises:
            ValidationError: account_id is not a SteamID64
            RateLimited: The previous remote call of this session was less than min_interval ago
            ServiceUnavailable: The remote call failed and nothing is cached

        Returns:
            RankResponseModel: rank with its source (cache, api or stale_cache)
        """
        validate_account_id(account_id)
        now = self.clock()
        entry = state.entries.get(account_id)

        if entry is not None and entry.is_fresh(now, level):
            logging.debug(f"Rank cache hit for {account_id}")
            return RankResponseModel(
                rank=entry.rank,
                source=RankSourceModel.cache,
                cached_until=entry.expires_at,
            )

        last_call_at = state.marker.last_call_at
        if last_call_at is not None and now - last_call_at < self.min_interval:
            raise RateLimited(
                "Too many rank requests, slow down",
                retry_after=self.min_interval,
                rank=entry.rank if entry is not None else None,
            )

        state.marker.last_call_at = now
        try:
            rank = await self.ladder_client.fetch_world_rank(account_id, timeout=self.timeout)
        except UpstreamError as e:
            logging.error(f"SteamLadder lookup for {account_id} failed: {e.message}")
            if entry is not None:
                return RankResponseModel(
                    rank=entry.rank,
                    source=RankSourceModel.stale_cache,
                    warning=STALE_WARNING,
                )
            raise ServiceUnavailable("SteamLadder rank is unavailable") from e

        expires_at = now + self.ttl
        state.entries[account_id] = RankCacheEntryModel(
            rank=rank, expires_at=expires_at, level=level
        )
        state.prune(account_id, self.max_entries)
        logging.info(f"Fetched SteamLadder rank {rank} for {account_id}")
        return RankResponseModel(
            rank=rank, source=RankSourceModel.api, cached_until=expires_at
        )
