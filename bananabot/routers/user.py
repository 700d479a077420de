import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from bananabot.dependencies import get_steam_web_client, steam_auth
from bananabot.domain.trade_url import validate_trade_url
from bananabot.load_secrets import cookie_secure
from bananabot.models.dc_models import (
    MessageModel,
    SteamLevelModel,
    TradeUrlModel,
    TradeUrlStatusModel,
)
from bananabot.models.session_models import IdentityModel, WebSessionModel
from bananabot.services.steam_client import SteamWebClient

TRADE_URL_COOKIE = "tradeUrl"
TRADE_URL_MAX_AGE = 30 * 24 * 60 * 60

user_router = APIRouter()
logging.basicConfig(level=logging.INFO)


def store_trade_url(response: Response, trade_url: str) -> None:
    response.set_cookie(
        TRADE_URL_COOKIE,
        trade_url,
        max_age=TRADE_URL_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=cookie_secure,
    )


def clear_trade_url(response: Response) -> None:
    response.delete_cookie(TRADE_URL_COOKIE, httponly=True, samesite="lax", secure=cookie_secure)


class UserAPI:
    @staticmethod
    @user_router.get("/api/user", response_model=Optional[IdentityModel])
    async def get_user(
        web_session: Optional[WebSessionModel] = Depends(steam_auth.optional_session),
    ):
        if web_session is None:
            return None
        return web_session.identity

    @staticmethod
    @user_router.get("/api/user/level", response_model=SteamLevelModel)
    async def get_level(
        web_session: WebSessionModel = Depends(steam_auth.check_identity),
        steam_client: SteamWebClient = Depends(get_steam_web_client),
    ):
        level = await steam_client.get_steam_level(web_session.identity.account_id)
        return SteamLevelModel(level=level)


class TradeUrlAPI:
    @staticmethod
    @user_router.get("/api/user/trade-url", response_model=TradeUrlStatusModel)
    async def get_trade_url(
        request: Request,
        response: Response,
        web_session: WebSessionModel = Depends(steam_auth.check_identity),
    ):
        """Return the stored trade URL, dropping it if it no longer validates."""
        identity = web_session.identity
        trade_url = request.cookies.get(TRADE_URL_COOKIE, "")
        valid = validate_trade_url(trade_url, identity)
        if trade_url and not valid:
            logging.info(f"Clearing stale trade URL of {identity.account_id}")
            clear_trade_url(response)
            trade_url = ""
        return TradeUrlStatusModel(
            trade_url=trade_url,
            valid=valid,
            is_custom_profile=identity.is_custom_profile,
        )

    @staticmethod
    @user_router.post("/api/user/trade-url", response_model=MessageModel)
    async def set_trade_url(
        body: TradeUrlModel,
        response: Response,
        web_session: WebSessionModel = Depends(steam_auth.check_identity),
    ):
        identity = web_session.identity
        if not body.trade_url.strip():
            clear_trade_url(response)
            return MessageModel(success=True, message="Trade URL cleared")

        if not validate_trade_url(body.trade_url, identity):
            error_response = JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid trade URL"},
            )
            clear_trade_url(error_response)
            return error_response

        store_trade_url(response, body.trade_url.strip())
        logging.info(f"Stored trade URL for {identity.account_id}")
        return MessageModel(success=True, message="Trade URL saved successfully!")
