"""
Closeness tiers: user-defined ranking buckets for organizing friends.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, delete, func, select, update

from friend_focus.db import ClosenessTierRow, Database, FriendRow

logger = logging.getLogger(__name__)


@dataclass
class ClosenessTierRecord:
    id: str
    label: str
    sort_order: int
    color: Optional[str]
    user_id: str
    created_at: float
    friend_count: int = 0


def _to_record(row: ClosenessTierRow, friend_count: int = 0) -> ClosenessTierRecord:
    return ClosenessTierRecord(
        id=row.id,
        label=row.label,
        sort_order=row.sort_order,
        color=row.color,
        user_id=row.user_id,
        created_at=row.created_at,
        friend_count=friend_count,
    )


def get_closeness_tiers(db: Database, user_id: str) -> list[ClosenessTierRecord]:
    stmt = (
        select(ClosenessTierRow, func.count(FriendRow.id))
        .outerjoin(
            FriendRow,
            and_(
                FriendRow.closeness_tier_id == ClosenessTierRow.id,
                FriendRow.user_id == user_id,
            ),
        )
        .where(ClosenessTierRow.user_id == user_id)
        .group_by(ClosenessTierRow.id)
        .order_by(ClosenessTierRow.sort_order.asc())
    )
    with db.Session() as session:
        return [_to_record(row, count) for row, count in session.execute(stmt).all()]


def get_closeness_tier(
    db: Database, tier_id: str, user_id: str
) -> Optional[ClosenessTierRecord]:
    with db.Session() as session:
        row = session.execute(
            select(ClosenessTierRow).where(
                ClosenessTierRow.id == tier_id, ClosenessTierRow.user_id == user_id
            )
        ).scalar_one_or_none()
        return _to_record(row) if row else None


def create_closeness_tier(
    db: Database, user_id: str, *, label: str, color: Optional[str] = None
) -> ClosenessTierRecord:
    """Append a new tier; the first tier a user creates gets sort_order 1."""
    with db.Session() as session:
        max_order = session.execute(
            select(func.max(ClosenessTierRow.sort_order)).where(
                ClosenessTierRow.user_id == user_id
            )
        ).scalar()
        row = ClosenessTierRow(
            label=label,
            color=color,
            sort_order=(max_order or 0) + 1,
            user_id=user_id,
            created_at=time.time(),
        )
        session.add(row)
        session.commit()
        return _to_record(row)


def update_closeness_tier(
    db: Database,
    tier_id: str,
    user_id: str,
    *,
    label: str,
    color: Optional[str] = None,
) -> None:
    with db.Session() as session:
        session.execute(
            update(ClosenessTierRow)
            .where(ClosenessTierRow.id == tier_id, ClosenessTierRow.user_id == user_id)
            .values(label=label, color=color)
        )
        session.commit()


def delete_closeness_tier(db: Database, tier_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(ClosenessTierRow).where(
                ClosenessTierRow.id == tier_id, ClosenessTierRow.user_id == user_id
            )
        )
        session.commit()


def reorder_closeness_tiers(db: Database, ordered_ids: list[str], user_id: str) -> None:
    """Set each tier's sort_order to its one-based index in `ordered_ids`."""
    with db.Session() as session:
        for index, tier_id in enumerate(ordered_ids, start=1):
            session.execute(
                update(ClosenessTierRow)
                .where(
                    ClosenessTierRow.id == tier_id, ClosenessTierRow.user_id == user_id
                )
                .values(sort_order=index)
            )
            session.commit()
    logger.info("Reordered %d closeness tiers for user %s", len(ordered_ids), user_id)
