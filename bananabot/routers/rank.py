import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from bananabot.dependencies import get_rank_lookup_cache, steam_auth
from bananabot.errors import BananaBotError, ValidationError, bananabot_error_handler
from bananabot.models.dc_models import RankResponseModel
from bananabot.models.session_models import WebSessionModel
from bananabot.services.rank_cache import RankLookupCache, validate_account_id

rank_router = APIRouter()
logging.basicConfig(level=logging.INFO)


class RankAPI:
    @staticmethod
    @rank_router.get(
        "/api/steamladder/rank",
        response_model=RankResponseModel,
        response_model_exclude_none=True,
    )
    async def get_rank(
        request: Request,
        response: Response,
        account_id: str = Query(default="", alias="accountId"),
        level: Optional[int] = Query(default=None, ge=0),
        rank_cache: RankLookupCache = Depends(get_rank_lookup_cache),
        web_session: Optional[WebSessionModel] = Depends(steam_auth.optional_session),
    ):
        """Look up the SteamLadder world rank of an account.

        Cache entries and the rate marker live in the caller's web session, so
        the session is saved whatever the outcome. Cookieless callers only get
        an anonymous session once the account id is known to be valid.
        """
        try:
            validate_account_id(account_id)
        except ValidationError as e:
            return await bananabot_error_handler(request, e)
        if web_session is None:
            web_session = await steam_auth.create_anonymous_session()

        try:
            result = await rank_cache.get_rank(account_id, web_session.rank_state, level)
        except BananaBotError as e:
            error_response = await bananabot_error_handler(request, e)
            steam_auth.set_session_cookie(error_response, web_session)
            return error_response
        finally:
            await steam_auth.save_session(web_session)

        steam_auth.set_session_cookie(response, web_session)
        return result
