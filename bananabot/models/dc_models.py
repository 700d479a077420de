from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RankSourceModel(str, Enum):
    cache = "cache"
    api = "api"
    stale_cache = "stale_cache"


class RankResponseModel(BaseModel):
    rank: Optional[int] = None
    source: RankSourceModel
    cached_until: Optional[float] = Field(default=None, alias="cachedUntil")
    warning: Optional[str] = None

    class Config:
        populate_by_name = True


class TradeUrlModel(BaseModel):
    trade_url: str = Field(default="", alias="tradeUrl")

    class Config:
        populate_by_name = True


class TradeUrlStatusModel(BaseModel):
    trade_url: str = Field(alias="tradeUrl")
    valid: bool
    is_custom_profile: bool = Field(alias="isCustomProfile")

    class Config:
        populate_by_name = True


class MessageModel(BaseModel):
    success: bool
    message: str


class LogoutModel(BaseModel):
    clear_cache: bool = Field(default=False, alias="clearCache")

    class Config:
        populate_by_name = True


class LogoutResponseModel(BaseModel):
    success: bool


class SteamLevelModel(BaseModel):
    level: int


class PerksModel(BaseModel):
    showcases: int
    emoticons_and_backgrounds: int
    profile_featured_slots: int
    friend_slots: int
    booster_pack_bonus: float  # percent


class LevelingDetailsModel(BaseModel):
    current_level: int
    desired_level: int
    total_cards: int
    sets: int
    keys: int
    key_price: float
    total_cost: float
    perks: PerksModel
