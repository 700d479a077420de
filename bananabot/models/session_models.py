from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

CUSTOM_PROFILE_MARKER = "/id/"


class IdentityModel(BaseModel):
    """Steam identity attached to a web session after a successful login."""
    account_id: str
    display_name: str
    profile_url: str
    avatar_url: Optional[str] = None

    @property
    def is_custom_profile(self) -> bool:
        return CUSTOM_PROFILE_MARKER in self.profile_url


class RankCacheEntryModel(BaseModel):
    rank: Optional[int] = None
    expires_at: float
    level: Optional[int] = None  # Steam level when the entry was written

    def is_fresh(self, now: float, level: Optional[int] = None) -> bool:
        if level is not None and self.level is not None and level != self.level:
            return False
        return now < self.expires_at


class RateLimitMarkerModel(BaseModel):
    last_call_at: Optional[float] = None


class RankSessionState(BaseModel):
    """Rank cache entries keyed by account id, plus the session's rate marker."""
    entries: Dict[str, RankCacheEntryModel] = Field(default_factory=dict)
    marker: RateLimitMarkerModel = Field(default_factory=RateLimitMarkerModel)

    def prune(self, keep_key: str, max_entries: int) -> None:
        """Keep at most max_entries, newest expires_at first. keep_key always survives."""
        if len(self.entries) <= max_entries:
            return
        others = sorted(
            (key for key in self.entries if key != keep_key),
            key=lambda key: self.entries[key].expires_at,
            reverse=True,
        )
        kept = set(others[:max(max_entries - 1, 0)])
        kept.add(keep_key)
        self.entries = {key: entry for key, entry in self.entries.items() if key in kept}


class WebSessionModel(BaseModel):
    session_id: str
    identity: Optional[IdentityModel] = None
    rank_state: RankSessionState = Field(default_factory=RankSessionState)
    created_at: datetime
    expires_at: datetime
