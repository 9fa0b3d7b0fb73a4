"""
Activities: user-defined tags that friends are rated against.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, func, select, update

from friend_focus.db import ActivityRow, Database, FriendActivityRow

logger = logging.getLogger(__name__)


@dataclass
class ActivityRecord:
    id: str
    name: str
    icon: Optional[str]
    is_default: bool
    sort_order: int
    user_id: str
    created_at: float
    rating_count: int = 0


def _to_record(row: ActivityRow, rating_count: int = 0) -> ActivityRecord:
    return ActivityRecord(
        id=row.id,
        name=row.name,
        icon=row.icon,
        is_default=row.is_default,
        sort_order=row.sort_order,
        user_id=row.user_id,
        created_at=row.created_at,
        rating_count=rating_count,
    )


def get_activities(db: Database, user_id: str) -> list[ActivityRecord]:
    stmt = (
        select(ActivityRow, func.count(FriendActivityRow.id))
        .outerjoin(FriendActivityRow, FriendActivityRow.activity_id == ActivityRow.id)
        .where(ActivityRow.user_id == user_id)
        .group_by(ActivityRow.id)
        .order_by(ActivityRow.sort_order.asc())
    )
    with db.Session() as session:
        return [_to_record(row, count) for row, count in session.execute(stmt).all()]


def get_activity(db: Database, activity_id: str, user_id: str) -> Optional[ActivityRecord]:
    with db.Session() as session:
        row = session.execute(
            select(ActivityRow).where(
                ActivityRow.id == activity_id, ActivityRow.user_id == user_id
            )
        ).scalar_one_or_none()
        return _to_record(row) if row else None


def create_activity(
    db: Database,
    user_id: str,
    *,
    name: str,
    icon: Optional[str] = None,
    is_default: bool = False,
) -> ActivityRecord:
    """Append a new activity after the user's current last position."""
    with db.Session() as session:
        max_order = session.execute(
            select(func.max(ActivityRow.sort_order)).where(
                ActivityRow.user_id == user_id
            )
        ).scalar()
        row = ActivityRow(
            name=name,
            icon=icon,
            is_default=is_default,
            sort_order=(max_order if max_order is not None else -1) + 1,
            user_id=user_id,
            created_at=time.time(),
        )
        session.add(row)
        session.commit()
        return _to_record(row)


def update_activity(
    db: Database,
    activity_id: str,
    user_id: str,
    *,
    name: str,
    icon: Optional[str] = None,
    is_default: bool = False,
) -> None:
    with db.Session() as session:
        session.execute(
            update(ActivityRow)
            .where(ActivityRow.id == activity_id, ActivityRow.user_id == user_id)
            .values(name=name, icon=icon, is_default=is_default)
        )
        session.commit()


def delete_activity(db: Database, activity_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(ActivityRow).where(
                ActivityRow.id == activity_id, ActivityRow.user_id == user_id
            )
        )
        session.commit()


def reorder_activities(db: Database, ordered_ids: list[str], user_id: str) -> None:
    """
    Set each activity's sort_order to its zero-based index in `ordered_ids`.

    Ids the user does not own match no rows and are skipped silently. Each
    position is committed on its own, so an interrupted call leaves a
    partially reordered set; re-running with the same ids converges.
    """
    with db.Session() as session:
        for index, activity_id in enumerate(ordered_ids):
            session.execute(
                update(ActivityRow)
                .where(ActivityRow.id == activity_id, ActivityRow.user_id == user_id)
                .values(sort_order=index)
            )
            session.commit()
    logger.info("Reordered %d activities for user %s", len(ordered_ids), user_id)
