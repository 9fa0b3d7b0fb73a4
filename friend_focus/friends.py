"""
Friends, with their closeness tier and related detail.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from sqlalchemy import and_, delete, select, update

from friend_focus.db import (
    ClosenessTierRow,
    Database,
    EventInvitationRow,
    EventRow,
    FriendRow,
)
from friend_focus.friend_activities import FriendActivityRecord, get_friend_activities
from friend_focus.notes import NoteFilters, NoteRecord, get_notes

SortBy = Literal["name", "closeness", "created_at"]

FRIEND_FIELDS = (
    "name",
    "photo",
    "phone",
    "email",
    "social_handles",
    "birthday",
    "address",
    "love_language",
    "favorite_food",
    "dietary_restrictions",
    "employer",
    "occupation",
    "personal_notes",
    "care_mode_active",
    "care_mode_note",
    "care_mode_reminder",
    "care_mode_started_at",
    "closeness_tier_id",
)


@dataclass
class FriendRecord:
    id: str
    name: str
    photo: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    social_handles: Optional[str]
    birthday: Optional[str]
    address: Optional[str]
    love_language: Optional[str]
    favorite_food: Optional[str]
    dietary_restrictions: Optional[str]
    employer: Optional[str]
    occupation: Optional[str]
    personal_notes: Optional[str]
    care_mode_active: bool
    care_mode_note: Optional[str]
    care_mode_reminder: Optional[str]
    care_mode_started_at: Optional[str]
    closeness_tier_id: Optional[str]
    user_id: str
    created_at: float
    updated_at: float
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None
    tier_sort_order: Optional[int] = None


@dataclass
class FriendInvitationRecord:
    id: str
    status: str
    attended: Optional[bool]
    event_id: str
    event_name: str
    event_date: Optional[str]
    event_status: str


@dataclass
class FriendDetail:
    friend: FriendRecord
    activity_ratings: list[FriendActivityRecord] = field(default_factory=list)
    invitations: list[FriendInvitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


def normalize_empty(data: dict[str, Any]) -> dict[str, Any]:
    """Map empty strings to None so clearing a form field persists as null."""
    return {key: (None if value == "" else value) for key, value in data.items()}


def _select_friends():
    return select(
        FriendRow,
        ClosenessTierRow.label,
        ClosenessTierRow.color,
        ClosenessTierRow.sort_order,
    ).outerjoin(ClosenessTierRow, FriendRow.closeness_tier_id == ClosenessTierRow.id)


def _to_record(
    row: FriendRow,
    tier_label: Optional[str] = None,
    tier_color: Optional[str] = None,
    tier_sort_order: Optional[int] = None,
) -> FriendRecord:
    values = {name: getattr(row, name) for name in FRIEND_FIELDS}
    return FriendRecord(
        id=row.id,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        tier_label=tier_label,
        tier_color=tier_color,
        tier_sort_order=tier_sort_order,
        **values,
    )


def get_friends(
    db: Database,
    user_id: str,
    *,
    search: Optional[str] = None,
    tier_id: Optional[str] = None,
    sort_by: SortBy = "name",
) -> list[FriendRecord]:
    conditions = [FriendRow.user_id == user_id]
    if search:
        conditions.append(FriendRow.name.like(f"%{search}%"))
    if tier_id:
        conditions.append(FriendRow.closeness_tier_id == tier_id)

    stmt = _select_friends().where(and_(*conditions))
    if sort_by == "closeness":
        stmt = stmt.order_by(ClosenessTierRow.sort_order.asc(), FriendRow.name.asc())
    elif sort_by == "created_at":
        stmt = stmt.order_by(FriendRow.created_at.desc())
    else:
        stmt = stmt.order_by(FriendRow.name.asc())

    with db.Session() as session:
        return [_to_record(*result) for result in session.execute(stmt).all()]


def get_friend(db: Database, friend_id: str, user_id: str) -> Optional[FriendRecord]:
    stmt = _select_friends().where(FriendRow.id == friend_id, FriendRow.user_id == user_id)
    with db.Session() as session:
        result = session.execute(stmt).first()
        return _to_record(*result) if result else None


def get_friend_detail(db: Database, friend_id: str, user_id: str) -> Optional[FriendDetail]:
    friend = get_friend(db, friend_id, user_id)
    if friend is None:
        return None

    stmt = (
        select(EventInvitationRow, EventRow.name, EventRow.date, EventRow.status)
        .join(EventRow, EventInvitationRow.event_id == EventRow.id)
        .where(EventInvitationRow.friend_id == friend_id)
        .order_by(EventRow.date.desc())
    )
    with db.Session() as session:
        invitations = [
            FriendInvitationRecord(
                id=inv.id,
                status=inv.status,
                attended=inv.attended,
                event_id=inv.event_id,
                event_name=event_name,
                event_date=event_date,
                event_status=event_status,
            )
            for inv, event_name, event_date, event_status in session.execute(stmt).all()
        ]

    return FriendDetail(
        friend=friend,
        activity_ratings=get_friend_activities(db, friend_id),
        invitations=invitations,
        notes=get_notes(db, user_id, NoteFilters(friend_id=friend_id)),
    )


def create_friend(db: Database, user_id: str, data: dict[str, Any]) -> FriendRecord:
    now = time.time()
    values = normalize_empty({k: v for k, v in data.items() if k in FRIEND_FIELDS})
    row = FriendRow(**values, user_id=user_id, created_at=now, updated_at=now)
    with db.Session() as session:
        session.add(row)
        session.commit()
    return get_friend(db, row.id, user_id)


def update_friend(db: Database, friend_id: str, user_id: str, data: dict[str, Any]) -> None:
    values = normalize_empty({k: v for k, v in data.items() if k in FRIEND_FIELDS})
    with db.Session() as session:
        session.execute(
            update(FriendRow)
            .where(FriendRow.id == friend_id, FriendRow.user_id == user_id)
            .values(**values, updated_at=time.time())
        )
        session.commit()


def set_friend_photo(
    db: Database, friend_id: str, user_id: str, photo: Optional[str]
) -> None:
    update_friend(db, friend_id, user_id, {"photo": photo})


def delete_friend(db: Database, friend_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(FriendRow).where(FriendRow.id == friend_id, FriendRow.user_id == user_id)
        )
        session.commit()


def get_friend_options(db: Database, user_id: str) -> list[tuple[str, str]]:
    """(id, name) pairs for pickers, ordered by name."""
    with db.Session() as session:
        rows = session.execute(
            select(FriendRow.id, FriendRow.name)
            .where(FriendRow.user_id == user_id)
            .order_by(FriendRow.name.asc())
        ).all()
        return [(row.id, row.name) for row in rows]
