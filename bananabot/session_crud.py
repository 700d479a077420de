import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bananabot.create_sqlite_engine import engine
from bananabot.models.session_models import (
    IdentityModel,
    RankSessionState,
    WebSessionModel,
)
from bananabot.models.session_schemas import Base, SteamUserTable, WebSessionTable

logging.basicConfig(level=logging.INFO)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def _to_model(row: WebSessionTable) -> WebSessionModel:
    identity = None
    if row.identity:
        identity = IdentityModel.model_validate_json(row.identity)
    rank_state = RankSessionState()
    if row.rank_state:
        rank_state = RankSessionState.model_validate_json(row.rank_state)
    return WebSessionModel(
        session_id=row.session_id,
        identity=identity,
        rank_state=rank_state,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


class CreateSession:
    @staticmethod
    async def create_table() -> None:
        """Create tables if not exists"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")

    @staticmethod
    async def create_web_session(web_session: WebSessionModel, session: AsyncSession) -> None:
        """Insert a new web session row

        Args:
            web_session (WebSessionModel): Session to persist
            session (AsyncSession): Database session
        """
        new_session = WebSessionTable(
            session_id=web_session.session_id,
            account_id=web_session.identity.account_id if web_session.identity else None,
            identity=web_session.identity.model_dump_json() if web_session.identity else None,
            rank_state=web_session.rank_state.model_dump_json(),
            created_at=web_session.created_at,
            expires_at=web_session.expires_at,
        )
        session.add(new_session)
        await session.commit()

    @staticmethod
    async def upsert_steam_user(identity: IdentityModel, session: AsyncSession) -> None:
        """Record the identity of a user who just logged in

        Args:
            identity (IdentityModel): Identity returned by Steam
            session (AsyncSession): Database session
        """
        result = await session.execute(
            select(SteamUserTable).where(SteamUserTable.account_id == identity.account_id)
        )
        user = result.scalars().first()
        if user is None:
            user = SteamUserTable(account_id=identity.account_id)
            session.add(user)
        user.display_name = identity.display_name
        user.profile_url = identity.profile_url
        user.avatar_url = identity.avatar_url
        user.last_login_at = datetime.now()
        await session.commit()


class ReadSession:
    @staticmethod
    async def read_web_session(session_id: str, now: datetime, session: AsyncSession) -> Optional[WebSessionModel]:
        """Read a web session that has not expired yet

        Args:
            session_id (str): Value of the session cookie
            now (datetime): Current time
            session (AsyncSession): Database session

        Returns:
            WebSessionModel | None: The session, or None if unknown or expired
        """
        stmt = select(WebSessionTable).where(
            WebSessionTable.session_id == session_id,
            WebSessionTable.expires_at > now,
        )
        result = await session.execute(stmt)
        row = result.scalars().first()
        if row is None:
            return None
        try:
            return _to_model(row)
        except ValueError as e:
            logging.error(f"Corrupted web session {session_id}: {e}")
            return None

    @staticmethod
    async def read_steam_user(account_id: str, session: AsyncSession) -> Optional[IdentityModel]:
        result = await session.execute(
            select(SteamUserTable).where(SteamUserTable.account_id == account_id)
        )
        user = result.scalars().first()
        if user is None:
            return None
        return IdentityModel(
            account_id=user.account_id,
            display_name=user.display_name,
            profile_url=user.profile_url,
            avatar_url=user.avatar_url,
        )


class UpdateSession:
    @staticmethod
    async def update_web_session(web_session: WebSessionModel, session: AsyncSession) -> bool:
        """Write the identity and rank state back to the session row

        Args:
            web_session (WebSessionModel): Session holding the new state
            session (AsyncSession): Database session

        Returns:
            bool: False if the row no longer exists
        """
        result = await session.execute(
            select(WebSessionTable).where(WebSessionTable.session_id == web_session.session_id)
        )
        row = result.scalars().first()
        if row is None:
            return False
        row.account_id = web_session.identity.account_id if web_session.identity else None
        row.identity = web_session.identity.model_dump_json() if web_session.identity else None
        row.rank_state = web_session.rank_state.model_dump_json()
        row.expires_at = web_session.expires_at
        await session.commit()
        return True


class DeleteSession:
    @staticmethod
    async def delete_web_session(session_id: str, session: AsyncSession) -> None:
        await session.execute(
            delete(WebSessionTable).where(WebSessionTable.session_id == session_id)
        )
        await session.commit()

    @staticmethod
    async def delete_steam_user(account_id: str, session: AsyncSession) -> None:
        """Remove the stored user and every session logged in as that user"""
        await session.execute(
            delete(WebSessionTable).where(WebSessionTable.account_id == account_id)
        )
        await session.execute(
            delete(SteamUserTable).where(SteamUserTable.account_id == account_id)
        )
        await session.commit()

    @staticmethod
    async def delete_expired_web_sessions(now: datetime, session: AsyncSession) -> int:
        """Delete web sessions whose expiry has passed

        Args:
            now (datetime): Current time
            session (AsyncSession): Database session

        Returns:
            int: Number of deleted sessions
        """
        result = await session.execute(
            delete(WebSessionTable).where(WebSessionTable.expires_at <= now)
        )
        await session.commit()
        return result.rowcount
