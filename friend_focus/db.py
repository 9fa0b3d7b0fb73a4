"""
Database engine, session factory and table definitions.

The `user`, `session` and `account` tables belong to the external auth
provider; this service only reads them. Everything else is owned by a user
and cascades away with it.
"""

from __future__ import annotations

import time
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    text,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_database_url(database_url: str) -> str:
    """Treat a bare filesystem path as a SQLite database file."""
    if "://" in database_url:
        return database_url
    return f"sqlite+pysqlite:///{database_url}"


class Database:
    """
    SQLAlchemy engine plus session factory. Accepts any SQLAlchemy URL
    (Postgres in deployments, SQLite locally and in tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required")
        url = normalize_database_url(database_url)
        engine_kwargs: dict = {"future": True, "pool_pre_ping": True}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url:
                # Every session must see the same in-memory database.
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _configure_sqlite)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))


def _configure_sqlite(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


Base = declarative_base()


def _now() -> float:
    return time.time()


# Auth provider tables


class UserRow(Base):
    __tablename__ = "user"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    image = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class SessionRow(Base):
    __tablename__ = "session"

    id = Column(String, primary_key=True, default=new_id)
    token = Column(String, nullable=False, unique=True)
    expires_at = Column(Float, nullable=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class AccountRow(Base):
    __tablename__ = "account"

    id = Column(String, primary_key=True, default=new_id)
    account_id = Column(String, nullable=False)
    provider_id = Column(String, nullable=False)
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    access_token = Column(String, nullable=True)
    refresh_token = Column(String, nullable=True)
    access_token_expires_at = Column(Float, nullable=True)
    scope = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


# Application tables


class ClosenessTierRow(Base):
    __tablename__ = "closeness_tier"

    id = Column(String, primary_key=True, default=new_id)
    label = Column(String, nullable=False)
    # Dense 1-based ordering maintained by the application, not a constraint.
    sort_order = Column(Integer, nullable=False)
    color = Column(String, nullable=True)
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(Float, nullable=False, default=_now)


class FriendRow(Base):
    __tablename__ = "friend"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    photo = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    social_handles = Column(String, nullable=True)
    birthday = Column(String, nullable=True)
    address = Column(String, nullable=True)
    love_language = Column(String, nullable=True)
    favorite_food = Column(String, nullable=True)
    dietary_restrictions = Column(String, nullable=True)
    employer = Column(String, nullable=True)
    occupation = Column(String, nullable=True)
    personal_notes = Column(Text, nullable=True)
    care_mode_active = Column(Boolean, nullable=False, default=False)
    care_mode_note = Column(String, nullable=True)
    care_mode_reminder = Column(String, nullable=True)
    care_mode_started_at = Column(String, nullable=True)
    closeness_tier_id = Column(
        String, ForeignKey("closeness_tier.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class ActivityRow(Base):
    __tablename__ = "activity"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="activity_user_name"),
    )

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    # Dense 0-based ordering maintained by the application, not a constraint.
    sort_order = Column(Integer, nullable=False, default=0)
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(Float, nullable=False, default=_now)


class FriendActivityRow(Base):
    __tablename__ = "friend_activity"

    # One row per (friend_id, activity_id), enforced by check-then-write.
    id = Column(String, primary_key=True, default=new_id)
    friend_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_id = Column(
        String, ForeignKey("activity.id", ondelete="CASCADE"), nullable=False
    )
    rating = Column(Integer, nullable=False)


class EventRow(Base):
    __tablename__ = "event"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    activity_id = Column(
        String, ForeignKey("activity.id", ondelete="SET NULL"), nullable=True
    )
    date = Column(String, nullable=True)
    time = Column(String, nullable=True)
    location = Column(String, nullable=True)
    capacity = Column(Integer, nullable=True)
    vibe = Column(String, nullable=True)
    status = Column(String, nullable=False, default="planning")
    google_calendar_event_id = Column(String, nullable=True)
    google_calendar_link = Column(String, nullable=True)
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class EventInvitationRow(Base):
    __tablename__ = "event_invitation"
    __table_args__ = (
        UniqueConstraint("event_id", "friend_id", name="event_invitation_unique"),
    )

    id = Column(String, primary_key=True, default=new_id)
    event_id = Column(
        String, ForeignKey("event.id", ondelete="CASCADE"), nullable=False
    )
    friend_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(String, nullable=False, default="not_invited")
    attended = Column(Boolean, nullable=True)
    must_invite = Column(Boolean, nullable=False, default=False)
    must_exclude = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class NoteRow(Base):
    __tablename__ = "note"

    id = Column(String, primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    type = Column(String, nullable=False)
    friend_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=True
    )
    event_id = Column(
        String, ForeignKey("event.id", ondelete="CASCADE"), nullable=True
    )
    user_id = Column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)


class GiftIdeaRow(Base):
    __tablename__ = "gift_idea"

    id = Column(String, primary_key=True, default=new_id)
    friend_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String, nullable=False)
    url = Column(String, nullable=True)
    price = Column(String, nullable=True)
    purchased = Column(Boolean, nullable=False, default=False)
    # ISO date (YYYY-MM-DD) the gift was marked purchased.
    purchased_at = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, default=_now)


class AvailabilityRow(Base):
    __tablename__ = "availability"

    id = Column(String, primary_key=True, default=new_id)
    friend_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label = Column(String, nullable=False)
    start_date = Column(String, nullable=False)
    end_date = Column(String, nullable=False)
    created_at = Column(Float, nullable=False, default=_now)


class FriendConnectionRow(Base):
    __tablename__ = "friend_connection"
    __table_args__ = (
        UniqueConstraint("friend_a_id", "friend_b_id", name="friend_connection_unique"),
    )

    # friend_a_id < friend_b_id, so each pair is stored once.
    id = Column(String, primary_key=True, default=new_id)
    friend_a_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False, index=True
    )
    friend_b_id = Column(
        String, ForeignKey("friend.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String, nullable=True)
    strength = Column(Integer, nullable=False, default=3)
    how_they_met = Column(String, nullable=True)
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(Float, nullable=False, default=_now)
    updated_at = Column(Float, nullable=False, default=_now)
