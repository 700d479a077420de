import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import async_sessionmaker

from bananabot.db import Session
from bananabot.errors import SessionError, UpstreamError
from bananabot.load_secrets import cookie_secure, session_ttl_hours, site_url
from bananabot.models.session_models import IdentityModel, WebSessionModel
from bananabot.services.steam_client import STEAM_COMMUNITY_URL, STEAM_OPENID_URL, SteamWebClient
from bananabot.session_crud import CreateSession, DeleteSession, ReadSession, UpdateSession

SESSION_COOKIE = "bananabot_session"
RETURN_PATH = "/auth/steam/return"
CLAIMED_ID_PATTERN = re.compile(r"^https?://steamcommunity\.com/openid/id/(7656119\d{10})/?$")
ANONYMOUS_SESSION_TTL = timedelta(minutes=10)

logging.basicConfig(level=logging.INFO)


class SteamAuthentication:
    def __init__(
        self,
        Session: async_sessionmaker = Session,
        clock: Callable[[], datetime] = datetime.now,
        session_ttl: timedelta = timedelta(hours=session_ttl_hours),
        anonymous_ttl: timedelta = ANONYMOUS_SESSION_TTL,
    ):
        self.Session = Session
        self.clock = clock
        self.session_ttl = session_ttl
        self.anonymous_ttl = anonymous_ttl

    @property
    def return_url(self) -> str:
        return f"{site_url}{RETURN_PATH}"

    @property
    def realm(self) -> str:
        return f"{site_url}/"

    def new_web_session(self, identity: Optional[IdentityModel] = None) -> WebSessionModel:
        now = self.clock()
        return WebSessionModel(
            session_id=secrets.token_urlsafe(32),
            identity=identity,
            created_at=now,
            expires_at=now + (self.session_ttl if identity is not None else self.anonymous_ttl),
        )

    async def load_session(self, request: Request) -> Optional[WebSessionModel]:
        """Read the web session referenced by the session cookie

        Args:
            request (Request): Incoming request

        Returns:
            WebSessionModel | None: None if there is no cookie or the session expired
        """
        session_id = request.cookies.get(SESSION_COOKIE)
        if not session_id:
            return None
        async with self.Session() as session:
            return await ReadSession.read_web_session(session_id, self.clock(), session)

    async def optional_session(self, request: Request) -> Optional[WebSessionModel]:
        return await self.load_session(request)

    async def check_identity(self, request: Request) -> WebSessionModel:
        """Require a logged-in Steam identity

        Raises:
            HTTPException: No session or the session carries no identity

        Returns:
            WebSessionModel: Session of the logged-in user
        """
        web_session = await self.load_session(request)
        if web_session is None or web_session.identity is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )
        return web_session

    async def create_anonymous_session(self) -> WebSessionModel:
        """Short-lived session without identity, so an anonymous rate marker has a home."""
        web_session = self.new_web_session()
        async with self.Session() as session:
            await CreateSession.create_web_session(web_session, session)
        return web_session

    async def save_session(self, web_session: WebSessionModel) -> None:
        async with self.Session() as session:
            updated = await UpdateSession.update_web_session(web_session, session)
        if not updated:
            logging.warning(f"Web session {web_session.session_id} vanished before it was saved")

    def set_session_cookie(self, response: Response, web_session: WebSessionModel) -> None:
        response.set_cookie(
            SESSION_COOKIE,
            web_session.session_id,
            max_age=max(int((web_session.expires_at - self.clock()).total_seconds()), 0),
            httponly=True,
            samesite="lax",
            secure=cookie_secure,
        )

    def clear_session_cookie(self, response: Response) -> None:
        response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="lax", secure=cookie_secure)

    async def resolve_identity(self, params: dict, steam_client: SteamWebClient) -> Optional[IdentityModel]:
        """Turn the OpenID return parameters into a verified identity

        Args:
            params (dict): Query parameters of the return request
            steam_client (SteamWebClient): Client used for verification and the profile lookup

        Returns:
            IdentityModel | None: None if the assertion is not genuine
        """
        if params.get("openid.mode") != "id_res":
            logging.info(f"Steam login not completed, mode: {params.get('openid.mode')}")
            return None
        if params.get("openid.op_endpoint") != STEAM_OPENID_URL:
            return None
        if not params.get("openid.return_to", "").startswith(self.return_url):
            logging.warning("Steam login returned to an unexpected URL")
            return None
        match = CLAIMED_ID_PATTERN.match(params.get("openid.claimed_id", ""))
        if match is None:
            return None
        if not await steam_client.verify_openid_assertion(params):
            logging.warning("Steam rejected the OpenID assertion")
            return None

        account_id = match.group(1)
        try:
            summary = await steam_client.get_player_summary(account_id)
        except UpstreamError as e:
            logging.error(f"Player summary lookup failed for {account_id}: {e.message}")
            summary = None
        if summary is None:
            return IdentityModel(
                account_id=account_id,
                display_name=account_id,
                profile_url=f"{STEAM_COMMUNITY_URL}/profiles/{account_id}/",
            )
        return IdentityModel(
            account_id=account_id,
            display_name=summary.get("personaname", account_id),
            profile_url=summary.get("profileurl", f"{STEAM_COMMUNITY_URL}/profiles/{account_id}/"),
            avatar_url=summary.get("avatarfull"),
        )

    async def login(self, identity: IdentityModel, previous: Optional[WebSessionModel] = None) -> WebSessionModel:
        """Start an authenticated session, replacing any previous one

        Args:
            identity (IdentityModel): Verified Steam identity
            previous (WebSessionModel, optional): Anonymous session of the same browser

        Returns:
            WebSessionModel: The new session
        """
        web_session = self.new_web_session(identity)
        if previous is not None:
            # keep the rate marker so logging in does not reset throttling
            web_session.rank_state.marker = previous.rank_state.marker
        async with self.Session() as session:
            if previous is not None:
                await DeleteSession.delete_web_session(previous.session_id, session)
            await CreateSession.create_web_session(web_session, session)
            await CreateSession.upsert_steam_user(identity, session)
        logging.info(f"Steam user {identity.account_id} logged in")
        return web_session

    async def logout(self, web_session: WebSessionModel, clear_cache: bool) -> None:
        """End the session; with clear_cache the stored user data goes too

        Raises:
            SessionError: The session could not be torn down
        """
        try:
            async with self.Session() as session:
                if clear_cache and web_session.identity is not None:
                    await DeleteSession.delete_steam_user(web_session.identity.account_id, session)
                await DeleteSession.delete_web_session(web_session.session_id, session)
        except Exception as e:
            logging.error(f"Error tearing down session {web_session.session_id}: {e}")
            raise SessionError("Failed to log out") from e

    async def delete_expired_sessions(self) -> None:
        async with self.Session() as session:
            deleted = await DeleteSession.delete_expired_web_sessions(self.clock(), session)
        logging.info(f"Deleted {deleted} expired web sessions")
