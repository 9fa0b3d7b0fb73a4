"""
Date ranges when a friend is away or busy (inclusive ISO dates).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select

from friend_focus.db import AvailabilityRow, Database, FriendRow


@dataclass
class AvailabilityRecord:
    id: str
    friend_id: str
    label: str
    start_date: str
    end_date: str
    created_at: float


def _to_record(row: AvailabilityRow) -> AvailabilityRecord:
    return AvailabilityRecord(
        id=row.id,
        friend_id=row.friend_id,
        label=row.label,
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
    )


def get_availabilities(db: Database, friend_id: str) -> list[AvailabilityRecord]:
    with db.Session() as session:
        rows = session.execute(
            select(AvailabilityRow)
            .where(AvailabilityRow.friend_id == friend_id)
            .order_by(AvailabilityRow.start_date.asc())
        ).scalars().all()
        return [_to_record(row) for row in rows]


def get_availabilities_for_user(
    db: Database, user_id: str
) -> dict[str, list[AvailabilityRecord]]:
    """Every availability window of the user's friends, keyed by friend id."""
    stmt = (
        select(AvailabilityRow)
        .join(FriendRow, AvailabilityRow.friend_id == FriendRow.id)
        .where(FriendRow.user_id == user_id)
        .order_by(AvailabilityRow.start_date.asc())
    )
    by_friend: dict[str, list[AvailabilityRecord]] = {}
    with db.Session() as session:
        for row in session.execute(stmt).scalars().all():
            by_friend.setdefault(row.friend_id, []).append(_to_record(row))
    return by_friend


def create_availability(
    db: Database,
    friend_id: str,
    user_id: str,
    *,
    label: str,
    start_date: str,
    end_date: str,
) -> Optional[AvailabilityRecord]:
    """Returns None when the friend is not the user's."""
    with db.Session() as session:
        owner = session.execute(
            select(FriendRow.id).where(FriendRow.id == friend_id, FriendRow.user_id == user_id)
        ).first()
        if owner is None:
            return None
        row = AvailabilityRow(
            friend_id=friend_id,
            label=label,
            start_date=start_date,
            end_date=end_date,
            created_at=time.time(),
        )
        session.add(row)
        session.commit()
        return _to_record(row)


def delete_availability(db: Database, availability_id: str, user_id: str) -> None:
    owned = select(FriendRow.id).where(FriendRow.user_id == user_id)
    with db.Session() as session:
        session.execute(
            delete(AvailabilityRow)
            .where(
                AvailabilityRow.id == availability_id,
                AvailabilityRow.friend_id.in_(owned),
            )
            .execution_options(synchronize_session=False)
        )
        session.commit()
