import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from bananabot.dependencies import get_steam_web_client
from bananabot.domain.leveling import MAX_LEVEL, MIN_LEVEL, calculate_leveling_details, parse_key_price
from bananabot.errors import UpstreamError
from bananabot.models.dc_models import LevelingDetailsModel
from bananabot.services.steam_client import SteamWebClient

TF2_APP_ID = 440
USD_CURRENCY = 1
KEY_MARKET_HASH_NAME = "Mann Co. Supply Crate Key"

market_router = APIRouter()
logging.basicConfig(level=logging.INFO)


class MarketAPI:
    @staticmethod
    @market_router.get("/api/market/priceoverview")
    async def price_overview(
        appid: int,
        market_hash_name: str,
        currency: int = USD_CURRENCY,
        steam_client: SteamWebClient = Depends(get_steam_web_client),
    ):
        try:
            return await steam_client.get_price_overview(appid, currency, market_hash_name)
        except UpstreamError as e:
            logging.error(f"Error fetching Steam market data: {e.message}")
            return JSONResponse(status_code=502, content={"error": "Failed to fetch Steam market data"})


class CalculatorAPI:
    @staticmethod
    @market_router.get("/api/calculator", response_model=LevelingDetailsModel)
    async def calculate(
        current: int = Query(ge=MIN_LEVEL, le=MAX_LEVEL),
        desired: int = Query(ge=MIN_LEVEL, le=MAX_LEVEL),
        key_price: Optional[float] = Query(default=None, alias="keyPrice", ge=0),
        steam_client: SteamWebClient = Depends(get_steam_web_client),
    ):
        """Cards, sets, keys and perks needed to level up.

        Without keyPrice the current TF2 key price is fetched from the market;
        if that fails the cost is reported as zero.
        """
        if key_price is None:
            try:
                overview = await steam_client.get_price_overview(
                    TF2_APP_ID, USD_CURRENCY, KEY_MARKET_HASH_NAME
                )
                key_price = parse_key_price(overview.get("lowest_price"))
            except UpstreamError as e:
                logging.error(f"Error fetching key price: {e.message}")
                key_price = 0.0
        return calculate_leveling_details(current, desired, key_price)
