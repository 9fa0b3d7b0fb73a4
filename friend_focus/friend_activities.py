"""
Per-friend activity ratings (1 = loves it ... 5 = definitely not).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select, update

from friend_focus.db import ActivityRow, Database, FriendActivityRow

logger = logging.getLogger(__name__)

ACTIVITY_RATING_LABELS = {
    1: "Loves it",
    2: "Interested",
    3: "Maybe",
    4: "Probably not",
    5: "Definitely not",
}


@dataclass
class FriendActivityRecord:
    id: str
    friend_id: str
    activity_id: str
    rating: int
    activity_name: Optional[str] = None
    activity_icon: Optional[str] = None
    activity_sort_order: Optional[int] = None


@dataclass
class RatingInput:
    activity_id: str
    rating: int


def get_friend_activities(db: Database, friend_id: str) -> list[FriendActivityRecord]:
    stmt = (
        select(
            FriendActivityRow,
            ActivityRow.name,
            ActivityRow.icon,
            ActivityRow.sort_order,
        )
        .join(ActivityRow, FriendActivityRow.activity_id == ActivityRow.id)
        .where(FriendActivityRow.friend_id == friend_id)
        .order_by(ActivityRow.sort_order.asc())
    )
    with db.Session() as session:
        return [
            FriendActivityRecord(
                id=row.id,
                friend_id=row.friend_id,
                activity_id=row.activity_id,
                rating=row.rating,
                activity_name=name,
                activity_icon=icon,
                activity_sort_order=sort_order,
            )
            for row, name, icon, sort_order in session.execute(stmt).all()
        ]


def upsert_friend_activity(
    db: Database, friend_id: str, activity_id: str, rating: int
) -> FriendActivityRecord:
    """Update the rating for (friend, activity) in place, or insert it."""
    with db.Session() as session:
        existing = session.execute(
            select(FriendActivityRow).where(
                FriendActivityRow.friend_id == friend_id,
                FriendActivityRow.activity_id == activity_id,
            )
        ).scalars().first()
        if existing:
            session.execute(
                update(FriendActivityRow)
                .where(FriendActivityRow.id == existing.id)
                .values(rating=rating)
            )
            session.commit()
            return FriendActivityRecord(
                id=existing.id,
                friend_id=friend_id,
                activity_id=activity_id,
                rating=rating,
            )

        row = FriendActivityRow(
            friend_id=friend_id, activity_id=activity_id, rating=rating
        )
        session.add(row)
        session.commit()
        return FriendActivityRecord(
            id=row.id,
            friend_id=row.friend_id,
            activity_id=row.activity_id,
            rating=row.rating,
        )


def delete_friend_activity(db: Database, friend_id: str, activity_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(FriendActivityRow).where(
                FriendActivityRow.friend_id == friend_id,
                FriendActivityRow.activity_id == activity_id,
            )
        )
        session.commit()


def bulk_upsert_friend_activities(
    db: Database, friend_id: str, ratings: list[RatingInput]
) -> None:
    """
    Make the friend's stored ratings exactly match `ratings`.

    Rows whose activity is absent from `ratings` are deleted first, then every
    desired pair is upserted. Not atomic: a failure part-way leaves a mix of
    old and new rows, and calling again with the same input converges.
    """
    desired_ids = {r.activity_id for r in ratings}
    with db.Session() as session:
        existing = session.execute(
            select(FriendActivityRow).where(FriendActivityRow.friend_id == friend_id)
        ).scalars().all()
        stale_ids = [row.id for row in existing if row.activity_id not in desired_ids]
        for row_id in stale_ids:
            session.execute(
                delete(FriendActivityRow).where(FriendActivityRow.id == row_id)
            )
            session.commit()

    for r in ratings:
        upsert_friend_activity(db, friend_id, r.activity_id, r.rating)

    logger.info(
        "Reconciled ratings for friend %s: %d removed, %d upserted",
        friend_id,
        len(stale_ids),
        len(ratings),
    )
