"""
Notes and journal entries, optionally linked to a friend or an event.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, delete, select, update

from friend_focus.db import Database, EventRow, FriendRow, NoteRow


@dataclass
class NoteRecord:
    id: str
    content: str
    type: str
    friend_id: Optional[str]
    friend_name: Optional[str]
    event_id: Optional[str]
    event_name: Optional[str]
    user_id: str
    created_at: float
    updated_at: float


@dataclass
class NoteFilters:
    type: Optional[str] = None
    friend_id: Optional[str] = None
    event_id: Optional[str] = None
    search: Optional[str] = None

    def conditions(self) -> list:
        """Predicates for every filter that is set; callers AND them together."""
        conditions = []
        if self.type:
            conditions.append(NoteRow.type == self.type)
        if self.friend_id:
            conditions.append(NoteRow.friend_id == self.friend_id)
        if self.event_id:
            conditions.append(NoteRow.event_id == self.event_id)
        if self.search:
            conditions.append(NoteRow.content.like(f"%{self.search}%"))
        return conditions


def _select_notes():
    return (
        select(NoteRow, FriendRow.name, EventRow.name)
        .outerjoin(FriendRow, NoteRow.friend_id == FriendRow.id)
        .outerjoin(EventRow, NoteRow.event_id == EventRow.id)
    )


def _to_record(row: NoteRow, friend_name: Optional[str], event_name: Optional[str]) -> NoteRecord:
    return NoteRecord(
        id=row.id,
        content=row.content,
        type=row.type,
        friend_id=row.friend_id,
        friend_name=friend_name,
        event_id=row.event_id,
        event_name=event_name,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def get_notes(
    db: Database, user_id: str, filters: Optional[NoteFilters] = None
) -> list[NoteRecord]:
    """Return the user's notes matching every supplied filter, newest first."""
    conditions = [NoteRow.user_id == user_id]
    if filters:
        conditions.extend(filters.conditions())
    stmt = _select_notes().where(and_(*conditions)).order_by(NoteRow.created_at.desc())
    with db.Session() as session:
        return [_to_record(*result) for result in session.execute(stmt).all()]


def get_note(db: Database, note_id: str, user_id: str) -> Optional[NoteRecord]:
    stmt = _select_notes().where(NoteRow.id == note_id, NoteRow.user_id == user_id)
    with db.Session() as session:
        result = session.execute(stmt).first()
        return _to_record(*result) if result else None


def create_note(
    db: Database,
    user_id: str,
    *,
    content: str,
    type: str,
    friend_id: Optional[str] = None,
    event_id: Optional[str] = None,
) -> NoteRecord:
    now = time.time()
    row = NoteRow(
        content=content,
        type=type,
        friend_id=friend_id or None,
        event_id=event_id or None,
        user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    with db.Session() as session:
        session.add(row)
        session.commit()
    return get_note(db, row.id, user_id)


def update_note(db: Database, note_id: str, content: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            update(NoteRow)
            .where(NoteRow.id == note_id, NoteRow.user_id == user_id)
            .values(content=content, updated_at=time.time())
        )
        session.commit()


def delete_note(db: Database, note_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(NoteRow).where(NoteRow.id == note_id, NoteRow.user_id == user_id)
        )
        session.commit()
