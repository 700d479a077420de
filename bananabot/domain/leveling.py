"""Steam leveling calculations.

Rule of thumb:
- OK: math on levels, cards and keys.
- Not OK: fetching the key price; callers pass it in.
"""

import math
import re
from typing import Optional

import numpy as np

from bananabot.models.dc_models import LevelingDetailsModel, PerksModel

MIN_LEVEL = 1
MAX_LEVEL = 5000
CARDS_PER_LEVEL = 10
CARDS_PER_SET = 10
CARDS_PER_KEY = 300

BASE_FRIEND_SLOTS = 250
MAX_FRIEND_SLOTS = 2000
MAX_FEATURED_SLOTS = 20
MAX_BOOSTER_BONUS = 10.0


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(int(level), MAX_LEVEL))


def total_cards_between(current: int, desired: int) -> int:
    """Cards needed from current to desired; level i costs i * 10 cards."""
    if current >= desired:
        return 0
    levels = np.arange(current, desired, dtype=np.int64)
    return int(levels.sum() * CARDS_PER_LEVEL)


def parse_key_price(lowest_price: Optional[str]) -> float:
    """Parse Steam's lowest_price string such as "$1.85" or "1,85€"."""
    if not lowest_price:
        return 0.0
    cleaned = re.sub(r"[^\d.,]", "", lowest_price).replace(",", ".")
    # "1.234.56" keeps only the last separator as the decimal point
    if cleaned.count(".") > 1:
        head, _, tail = cleaned.rpartition(".")
        cleaned = head.replace(".", "") + "." + tail
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def calculate_perks(current: int, desired: int) -> PerksModel:
    diff = max(desired - current, 0)
    return PerksModel(
        showcases=diff // 10,
        emoticons_and_backgrounds=diff // 5,
        profile_featured_slots=min(diff // 50, MAX_FEATURED_SLOTS),
        friend_slots=min(BASE_FRIEND_SLOTS + diff * 5, MAX_FRIEND_SLOTS),
        booster_pack_bonus=round(min(diff * 0.1, MAX_BOOSTER_BONUS), 1),
    )


def calculate_leveling_details(current: int, desired: int, key_price: float = 0.0) -> LevelingDetailsModel:
    current = clamp_level(current)
    desired = clamp_level(desired)
    total_cards = total_cards_between(current, desired)
    keys = math.ceil(total_cards / CARDS_PER_KEY)
    return LevelingDetailsModel(
        current_level=current,
        desired_level=desired,
        total_cards=total_cards,
        sets=math.ceil(total_cards / CARDS_PER_SET),
        keys=keys,
        key_price=key_price,
        total_cost=round(keys * key_price, 2),
        perks=calculate_perks(current, desired),
    )
