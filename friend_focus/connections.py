"""
Relationships between two of a user's friends, and the graph built from them.

A pair is stored once with `friend_a_id < friend_b_id`, whichever order the
caller names them in.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import and_, delete, or_, select, update

from friend_focus.db import ClosenessTierRow, Database, FriendConnectionRow, FriendRow
from friend_focus.friends import normalize_empty

CONNECTION_FIELDS = ("type", "strength", "how_they_met", "start_date", "end_date", "notes")
DEFAULT_STRENGTH = 3


@dataclass
class ConnectionRecord:
    id: str
    friend_a_id: str
    friend_b_id: str
    type: Optional[str]
    strength: int
    how_they_met: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    notes: Optional[str]
    created_at: float
    updated_at: float


@dataclass
class GraphNode:
    id: str
    name: str
    tier_label: Optional[str]
    tier_color: Optional[str]


@dataclass
class GraphEdge:
    friend_a_id: str
    friend_b_id: str
    strength: int
    type: Optional[str]


@dataclass
class ConnectionGraph:
    friends: list[GraphNode] = field(default_factory=list)
    connections: list[GraphEdge] = field(default_factory=list)


def _to_record(row: FriendConnectionRow) -> ConnectionRecord:
    return ConnectionRecord(
        id=row.id,
        friend_a_id=row.friend_a_id,
        friend_b_id=row.friend_b_id,
        type=row.type,
        strength=row.strength,
        how_they_met=row.how_they_met,
        start_date=row.start_date,
        end_date=row.end_date,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _owned_friend_ids(user_id: str):
    return select(FriendRow.id).where(FriendRow.user_id == user_id)


def _owned_connections(user_id: str):
    # Both ends are checked on create, so owning one end implies owning both.
    return FriendConnectionRow.friend_a_id.in_(_owned_friend_ids(user_id))


def canonical_pair(friend_a_id: str, friend_b_id: str) -> tuple[str, str]:
    if friend_a_id > friend_b_id:
        return friend_b_id, friend_a_id
    return friend_a_id, friend_b_id


def get_connections(
    db: Database, user_id: str, friend_id: Optional[str] = None
) -> list[ConnectionRecord]:
    """Newest first; limited to connections touching `friend_id` when given."""
    conditions = [_owned_connections(user_id)]
    if friend_id:
        conditions.append(
            or_(
                FriendConnectionRow.friend_a_id == friend_id,
                FriendConnectionRow.friend_b_id == friend_id,
            )
        )
    stmt = (
        select(FriendConnectionRow)
        .where(and_(*conditions))
        .order_by(FriendConnectionRow.created_at.desc())
    )
    with db.Session() as session:
        return [_to_record(row) for row in session.execute(stmt).scalars().all()]


def get_connection(
    db: Database, connection_id: str, user_id: str
) -> Optional[ConnectionRecord]:
    with db.Session() as session:
        row = session.execute(
            select(FriendConnectionRow).where(
                FriendConnectionRow.id == connection_id, _owned_connections(user_id)
            )
        ).scalars().first()
        return _to_record(row) if row else None


def create_connection(
    db: Database,
    user_id: str,
    friend_a_id: str,
    friend_b_id: str,
    data: Optional[dict[str, Any]] = None,
) -> Optional[ConnectionRecord]:
    """
    Connect two of the user's friends. Returns None when either friend is
    not the user's; raises ValueError for a self-connection and lets the
    IntegrityError through when the pair already exists.
    """
    if friend_a_id == friend_b_id:
        raise ValueError("Cannot connect a friend to themselves")
    friend_a_id, friend_b_id = canonical_pair(friend_a_id, friend_b_id)
    values = normalize_empty({k: v for k, v in (data or {}).items() if k in CONNECTION_FIELDS})
    if values.get("strength") is None:
        values["strength"] = DEFAULT_STRENGTH

    now = time.time()
    with db.Session() as session:
        owned = session.execute(
            select(FriendRow.id).where(
                FriendRow.id.in_([friend_a_id, friend_b_id]), FriendRow.user_id == user_id
            )
        ).all()
        if len(owned) != 2:
            return None
        row = FriendConnectionRow(
            **values,
            friend_a_id=friend_a_id,
            friend_b_id=friend_b_id,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        session.commit()
        return _to_record(row)


def update_connection(
    db: Database, connection_id: str, user_id: str, data: dict[str, Any]
) -> bool:
    values = normalize_empty({k: v for k, v in data.items() if k in CONNECTION_FIELDS})
    if values.get("strength", DEFAULT_STRENGTH) is None:
        values["strength"] = DEFAULT_STRENGTH
    with db.Session() as session:
        result = session.execute(
            update(FriendConnectionRow)
            .where(FriendConnectionRow.id == connection_id, _owned_connections(user_id))
            .values(**values, updated_at=time.time())
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return bool(result.rowcount)


def delete_connection(db: Database, connection_id: str, user_id: str) -> None:
    with db.Session() as session:
        session.execute(
            delete(FriendConnectionRow)
            .where(FriendConnectionRow.id == connection_id, _owned_connections(user_id))
            .execution_options(synchronize_session=False)
        )
        session.commit()


def get_connection_strengths(db: Database, user_id: str) -> dict[str, dict[str, int]]:
    """Symmetric adjacency map: strengths[a][b] == strengths[b][a]."""
    strengths: dict[str, dict[str, int]] = {}
    for conn in get_connections(db, user_id):
        strengths.setdefault(conn.friend_a_id, {})[conn.friend_b_id] = conn.strength
        strengths.setdefault(conn.friend_b_id, {})[conn.friend_a_id] = conn.strength
    return strengths


def get_graph_data(db: Database, user_id: str) -> ConnectionGraph:
    stmt = (
        select(FriendRow.id, FriendRow.name, ClosenessTierRow.label, ClosenessTierRow.color)
        .outerjoin(ClosenessTierRow, FriendRow.closeness_tier_id == ClosenessTierRow.id)
        .where(FriendRow.user_id == user_id)
        .order_by(FriendRow.name.asc())
    )
    with db.Session() as session:
        nodes = [
            GraphNode(id=row.id, name=row.name, tier_label=row.label, tier_color=row.color)
            for row in session.execute(stmt).all()
        ]
    edges = [
        GraphEdge(
            friend_a_id=conn.friend_a_id,
            friend_b_id=conn.friend_b_id,
            strength=conn.strength,
            type=conn.type,
        )
        for conn in get_connections(db, user_id)
    ]
    return ConnectionGraph(friends=nodes, connections=edges)
