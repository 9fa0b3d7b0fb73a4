"""
Gift ideas kept per friend, with a purchased flag.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, select, update

from friend_focus.db import Database, FriendRow, GiftIdeaRow
from friend_focus.friends import normalize_empty

GIFT_IDEA_FIELDS = ("description", "url", "price")


@dataclass
class GiftIdeaRecord:
    id: str
    friend_id: str
    description: str
    url: Optional[str]
    price: Optional[str]
    purchased: bool
    purchased_at: Optional[str]
    created_at: float


def _to_record(row: GiftIdeaRow) -> GiftIdeaRecord:
    return GiftIdeaRecord(
        id=row.id,
        friend_id=row.friend_id,
        description=row.description,
        url=row.url,
        price=row.price,
        purchased=row.purchased,
        purchased_at=row.purchased_at,
        created_at=row.created_at,
    )


def _owned_friend_ids(user_id: str):
    return select(FriendRow.id).where(FriendRow.user_id == user_id)


def _get_owned(session, gift_id: str, user_id: str) -> Optional[GiftIdeaRow]:
    return session.execute(
        select(GiftIdeaRow).where(
            GiftIdeaRow.id == gift_id,
            GiftIdeaRow.friend_id.in_(_owned_friend_ids(user_id)),
        )
    ).scalars().first()


def get_gift_ideas(db: Database, friend_id: str) -> list[GiftIdeaRecord]:
    """Newest first."""
    with db.Session() as session:
        rows = session.execute(
            select(GiftIdeaRow)
            .where(GiftIdeaRow.friend_id == friend_id)
            .order_by(GiftIdeaRow.created_at.desc())
        ).scalars().all()
        return [_to_record(row) for row in rows]


def create_gift_idea(
    db: Database, friend_id: str, user_id: str, data: dict[str, Any]
) -> Optional[GiftIdeaRecord]:
    """Returns None when the friend is not the user's."""
    values = normalize_empty({k: v for k, v in data.items() if k in GIFT_IDEA_FIELDS})
    with db.Session() as session:
        owner = session.execute(
            select(FriendRow.id).where(FriendRow.id == friend_id, FriendRow.user_id == user_id)
        ).first()
        if owner is None:
            return None
        row = GiftIdeaRow(
            **values, friend_id=friend_id, purchased=False, created_at=time.time()
        )
        session.add(row)
        session.commit()
        return _to_record(row)


def update_gift_idea(
    db: Database, gift_id: str, user_id: str, data: dict[str, Any]
) -> bool:
    values = normalize_empty({k: v for k, v in data.items() if k in GIFT_IDEA_FIELDS})
    with db.Session() as session:
        result = session.execute(
            update(GiftIdeaRow)
            .where(
                GiftIdeaRow.id == gift_id,
                GiftIdeaRow.friend_id.in_(_owned_friend_ids(user_id)),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return bool(result.rowcount)


def delete_gift_idea(db: Database, gift_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(GiftIdeaRow)
            .where(
                GiftIdeaRow.id == gift_id,
                GiftIdeaRow.friend_id.in_(_owned_friend_ids(user_id)),
            )
            .execution_options(synchronize_session=False)
        )
        session.commit()


def toggle_gift_purchased(
    db: Database, gift_id: str, user_id: str
) -> Optional[GiftIdeaRecord]:
    """
    Flip the purchased flag. Marking a gift purchased stamps today's UTC date;
    un-marking clears it. Returns the updated gift, or None if not the user's.
    """
    with db.Session() as session:
        gift = _get_owned(session, gift_id, user_id)
        if gift is None:
            return None
        purchased = not gift.purchased
        purchased_at = datetime.now(timezone.utc).date().isoformat() if purchased else None
        gift.purchased = purchased
        gift.purchased_at = purchased_at
        session.commit()
        return _to_record(gift)
