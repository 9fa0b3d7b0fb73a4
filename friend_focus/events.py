"""
Events and their guest invitations.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import and_, delete, func, select, update

from friend_focus.db import (
    ActivityRow,
    ClosenessTierRow,
    Database,
    EventInvitationRow,
    EventRow,
    FriendRow,
)
from friend_focus.friends import normalize_empty
from friend_focus.notes import NoteFilters, NoteRecord, get_notes

EVENT_FIELDS = (
    "name",
    "activity_id",
    "date",
    "time",
    "location",
    "capacity",
    "vibe",
    "status",
)
INVITATION_FIELDS = ("status", "attended", "must_invite", "must_exclude")


@dataclass
class EventRecord:
    id: str
    name: str
    activity_id: Optional[str]
    activity_name: Optional[str]
    date: Optional[str]
    time: Optional[str]
    location: Optional[str]
    capacity: Optional[int]
    vibe: Optional[str]
    status: str
    user_id: str
    created_at: float
    updated_at: float
    invitation_count: int = 0


@dataclass
class InvitationRecord:
    id: str
    event_id: str
    friend_id: str
    friend_name: Optional[str]
    status: str
    attended: Optional[bool]
    must_invite: bool
    must_exclude: bool
    created_at: float
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None


@dataclass
class EventDetail:
    event: EventRecord
    invitations: list[InvitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


def _to_record(
    row: EventRow, activity_name: Optional[str], invitation_count: int = 0
) -> EventRecord:
    return EventRecord(
        id=row.id,
        name=row.name,
        activity_id=row.activity_id,
        activity_name=activity_name,
        date=row.date,
        time=row.time,
        location=row.location,
        capacity=row.capacity,
        vibe=row.vibe,
        status=row.status,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        invitation_count=invitation_count,
    )


def _to_invitation(
    row: EventInvitationRow,
    friend_name: Optional[str] = None,
    tier_label: Optional[str] = None,
    tier_color: Optional[str] = None,
) -> InvitationRecord:
    return InvitationRecord(
        id=row.id,
        event_id=row.event_id,
        friend_id=row.friend_id,
        friend_name=friend_name,
        status=row.status,
        attended=row.attended,
        must_invite=row.must_invite,
        must_exclude=row.must_exclude,
        created_at=row.created_at,
        tier_label=tier_label,
        tier_color=tier_color,
    )


def get_events(
    db: Database, user_id: str, status: Optional[str] = None
) -> list[EventRecord]:
    conditions = [EventRow.user_id == user_id]
    if status:
        conditions.append(EventRow.status == status)
    stmt = (
        select(EventRow, ActivityRow.name, func.count(EventInvitationRow.id))
        .outerjoin(ActivityRow, EventRow.activity_id == ActivityRow.id)
        .outerjoin(EventInvitationRow, EventInvitationRow.event_id == EventRow.id)
        .where(and_(*conditions))
        .group_by(EventRow.id, ActivityRow.name)
        .order_by(EventRow.date.desc())
    )
    with db.Session() as session:
        return [_to_record(*result) for result in session.execute(stmt).all()]


def get_event(db: Database, event_id: str, user_id: str) -> Optional[EventRecord]:
    stmt = (
        select(EventRow, ActivityRow.name)
        .outerjoin(ActivityRow, EventRow.activity_id == ActivityRow.id)
        .where(EventRow.id == event_id, EventRow.user_id == user_id)
    )
    with db.Session() as session:
        result = session.execute(stmt).first()
        return _to_record(*result) if result else None


def get_event_detail(db: Database, event_id: str, user_id: str) -> Optional[EventDetail]:
    event = get_event(db, event_id, user_id)
    if event is None:
        return None

    stmt = (
        select(
            EventInvitationRow,
            FriendRow.name,
            ClosenessTierRow.label,
            ClosenessTierRow.color,
        )
        .join(FriendRow, EventInvitationRow.friend_id == FriendRow.id)
        .outerjoin(ClosenessTierRow, FriendRow.closeness_tier_id == ClosenessTierRow.id)
        .where(EventInvitationRow.event_id == event_id)
        .order_by(EventInvitationRow.created_at.asc())
    )
    with db.Session() as session:
        invitations = [_to_invitation(*result) for result in session.execute(stmt).all()]

    return EventDetail(
        event=event,
        invitations=invitations,
        notes=get_notes(db, user_id, NoteFilters(event_id=event_id)),
    )


def create_event(db: Database, user_id: str, data: dict[str, Any]) -> EventRecord:
    now = time.time()
    values = normalize_empty({k: v for k, v in data.items() if k in EVENT_FIELDS})
    if not values.get("status"):
        values["status"] = "planning"
    row = EventRow(**values, user_id=user_id, created_at=now, updated_at=now)
    with db.Session() as session:
        session.add(row)
        session.commit()
    return get_event(db, row.id, user_id)


def update_event(db: Database, event_id: str, user_id: str, data: dict[str, Any]) -> None:
    values = normalize_empty({k: v for k, v in data.items() if k in EVENT_FIELDS})
    with db.Session() as session:
        session.execute(
            update(EventRow)
            .where(EventRow.id == event_id, EventRow.user_id == user_id)
            .values(**values, updated_at=time.time())
        )
        session.commit()


def delete_event(db: Database, event_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(EventRow).where(EventRow.id == event_id, EventRow.user_id == user_id)
        )
        session.commit()


def add_invitation(db: Database, event_id: str, friend_id: str) -> InvitationRecord:
    now = time.time()
    row = EventInvitationRow(
        event_id=event_id,
        friend_id=friend_id,
        status="not_invited",
        must_invite=False,
        must_exclude=False,
        created_at=now,
        updated_at=now,
    )
    with db.Session() as session:
        session.add(row)
        session.commit()
    return _to_invitation(row)


def _owned_invitation_ids(user_id: str):
    return select(EventInvitationRow.id).join(
        EventRow, EventInvitationRow.event_id == EventRow.id
    ).where(EventRow.user_id == user_id)


def update_invitation(
    db: Database, invitation_id: str, user_id: str, data: dict[str, Any]
) -> bool:
    """Apply RSVP/attendance changes. Returns False if the user does not own it."""
    values = {k: v for k, v in data.items() if k in INVITATION_FIELDS}
    with db.Session() as session:
        result = session.execute(
            update(EventInvitationRow)
            .where(
                EventInvitationRow.id == invitation_id,
                EventInvitationRow.id.in_(_owned_invitation_ids(user_id)),
            )
            .values(**values, updated_at=time.time())
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return bool(result.rowcount)


def remove_invitation(db: Database, invitation_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(EventInvitationRow)
            .where(
                EventInvitationRow.id == invitation_id,
                EventInvitationRow.id.in_(_owned_invitation_ids(user_id)),
            )
            .execution_options(synchronize_session=False)
        )
        session.commit()
