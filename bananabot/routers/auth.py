import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from bananabot.dependencies import get_steam_web_client, steam_auth
from bananabot.models.dc_models import LogoutModel, LogoutResponseModel
from bananabot.models.session_models import WebSessionModel
from bananabot.routers.user import clear_trade_url
from bananabot.services.steam_client import SteamWebClient

auth_router = APIRouter()
logging.basicConfig(level=logging.INFO)


class AuthAPI:
    @staticmethod
    @auth_router.get("/auth/steam")
    async def steam_login(steam_client: SteamWebClient = Depends(get_steam_web_client)):
        logging.info("Initiating Steam authentication")
        login_url = steam_client.build_login_url(steam_auth.return_url, steam_auth.realm)
        return RedirectResponse(login_url, status_code=302)

    @staticmethod
    @auth_router.get("/auth/steam/return")
    async def steam_return(
        request: Request,
        steam_client: SteamWebClient = Depends(get_steam_web_client),
    ):
        params = dict(request.query_params)
        identity = await steam_auth.resolve_identity(params, steam_client)
        response = RedirectResponse("/", status_code=302)
        if identity is None:
            return response

        previous = await steam_auth.load_session(request)
        web_session = await steam_auth.login(identity, previous)
        steam_auth.set_session_cookie(response, web_session)
        return response

    @staticmethod
    @auth_router.post("/api/auth/logout", response_model=LogoutResponseModel)
    async def logout(
        body: LogoutModel,
        response: Response,
        web_session: WebSessionModel = Depends(steam_auth.check_identity),
    ):
        """End the session; clearCache also forgets the user and the trade URL."""
        await steam_auth.logout(web_session, body.clear_cache)
        steam_auth.clear_session_cookie(response)
        if body.clear_cache:
            clear_trade_url(response)
        return LogoutResponseModel(success=True)
