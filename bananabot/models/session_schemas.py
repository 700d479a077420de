from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import String, DateTime, TEXT


class Base(DeclarativeBase):
    pass


class WebSessionTable(Base):
    __tablename__ = "web_sessions"
    session_id = Column(String, primary_key=True, index=True)
    account_id = Column(String, index=True, nullable=True)
    identity = Column(TEXT, nullable=True)
    rank_state = Column(TEXT, nullable=True)
    created_at = Column(DateTime)
    expires_at = Column(DateTime, index=True)


class SteamUserTable(Base):
    __tablename__ = "steam_users"
    account_id = Column(String, primary_key=True, index=True)
    display_name = Column(String)
    profile_url = Column(String)
    avatar_url = Column(String, nullable=True)
    last_login_at = Column(DateTime)
