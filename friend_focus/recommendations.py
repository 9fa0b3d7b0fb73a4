"""
Guest recommendations for an event.

Each of the user's friends gets four 0-100 sub-scores (interest in the
event's activity, closeness tier, social fit with the current invitees and
attendance history). The event's vibe decides how they are weighted into
one composite score. Friends who are away on the event date are flagged,
not dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select

from friend_focus import closeness, events, friends
from friend_focus.availability import AvailabilityRecord, get_availabilities_for_user
from friend_focus.connections import get_connection_strengths
from friend_focus.db import Database, EventInvitationRow, EventRow, FriendActivityRow, FriendRow
from friend_focus.friend_activities import ACTIVITY_RATING_LABELS

logger = logging.getLogger(__name__)

RECENT_EVENT_LIMIT = 5


@dataclass(frozen=True)
class VibeWeights:
    interest: float
    closeness: float
    social_fit: float
    attendance: float


VIBE_WEIGHTS = {
    "tight_knit": VibeWeights(interest=0.2, closeness=0.3, social_fit=0.35, attendance=0.15),
    "mixer": VibeWeights(interest=0.15, closeness=0.2, social_fit=0.4, attendance=0.25),
    "activity_focused": VibeWeights(
        interest=0.45, closeness=0.15, social_fit=0.15, attendance=0.25
    ),
    "balanced": VibeWeights(interest=0.25, closeness=0.25, social_fit=0.25, attendance=0.25),
}

RATING_SCORES = {1: 100, 2: 75, 3: 50, 4: 25, 5: 0}
UNRATED_INTEREST_SCORE = 40
UNTIERED_CLOSENESS_SCORE = 30
NEUTRAL_SCORE = 50


@dataclass
class SocialFit:
    knows: int
    of: int
    score: int


@dataclass
class AttendanceScore:
    rate: str
    score: int


@dataclass
class PastInvitation:
    event_id: str
    status: str
    attended: Optional[bool]


@dataclass
class FriendRecommendation:
    friend_id: str
    friend_name: str
    tier_label: Optional[str]
    tier_color: Optional[str]
    score: int
    interest_rating: str
    interest_score: int
    closeness_score: int
    social_fit: SocialFit
    attendance: AttendanceScore
    available: bool
    availability_note: Optional[str]
    explanation: str
    is_invited: bool
    invitation_id: Optional[str]
    invitation_status: Optional[str]


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def score_activity_interest(rating: Optional[int]) -> int:
    if rating is None:
        return UNRATED_INTEREST_SCORE
    return RATING_SCORES.get(rating, UNRATED_INTEREST_SCORE)


def score_closeness(sort_order: Optional[int], min_order: int, max_order: int) -> int:
    """Closest tier scores 100, farthest 0, linear in between."""
    if sort_order is None:
        return UNTIERED_CLOSENESS_SCORE
    if min_order == max_order:
        return 100
    return round_half_up(100 - (sort_order - min_order) / (max_order - min_order) * 100)


def score_social_fit(
    friend_id: str,
    invitee_ids: Iterable[str],
    connection_map: dict[str, dict[str, int]],
    vibe: Optional[str],
) -> SocialFit:
    """
    tight_knit rewards strong ties to the invitees, mixer rewards strangers,
    any other vibe averages the two.
    """
    invitee_ids = set(invitee_ids)
    invitee_count = len(invitee_ids)
    if invitee_count == 0:
        return SocialFit(knows=0, of=0, score=NEUTRAL_SCORE)

    known = connection_map.get(friend_id, {})
    strengths = [known[invitee] for invitee in invitee_ids if invitee in known]
    connected = len(strengths)

    tight_knit = round_half_up(sum(strengths) / (5 * invitee_count) * 100)
    mixer = round_half_up((invitee_count - connected) / invitee_count * 100)
    if vibe == "tight_knit":
        score = tight_knit
    elif vibe == "mixer":
        score = mixer
    else:
        score = round_half_up((tight_knit + mixer) / 2)
    return SocialFit(knows=connected, of=invitee_count, score=score)


def score_attendance(
    invitations: Iterable[PastInvitation],
    current_event_id: str,
    recent_event_ids: list[str],
) -> AttendanceScore:
    """
    Share of resolved invitations the friend showed up to (recorded
    attendance wins over RSVP). Friends left out of the latest events get a
    small boost so the same people are not invited every time.
    """
    past = [inv for inv in invitations if inv.event_id != current_event_id]
    if not past:
        return AttendanceScore(rate="0/0", score=NEUTRAL_SCORE)

    positive = 0
    resolved = 0
    for inv in past:
        if inv.attended is True:
            positive += 1
            resolved += 1
        elif inv.attended is False:
            resolved += 1
        elif inv.status == "attending":
            positive += 1
            resolved += 1
        elif inv.status == "declined":
            resolved += 1

    score = round_half_up(positive / resolved * 100) if resolved else NEUTRAL_SCORE

    invited_to = {inv.event_id for inv in past}
    missed = sum(1 for event_id in recent_event_ids[:3] if event_id not in invited_to)
    if missed >= 3:
        score = min(100, score + 10)
    elif missed >= 2:
        score = min(100, score + 5)

    return AttendanceScore(rate=f"{positive}/{len(past)}", score=score)


def check_availability(
    availabilities: Iterable[AvailabilityRecord], event_date: Optional[str]
) -> tuple[bool, Optional[str]]:
    """(available, note). ISO dates compare correctly as strings."""
    if not event_date:
        return True, None
    for window in availabilities:
        if window.start_date <= event_date <= window.end_date:
            return False, f"{window.label}: {window.start_date} - {window.end_date}"
    return True, None


def build_explanation(
    interest_rating: str,
    interest_score: int,
    tier_label: Optional[str],
    social_fit: SocialFit,
    attendance_rate: str,
    available: bool,
) -> str:
    parts = []
    if interest_score >= 75:
        parts.append(f"Interest: {interest_rating}")
    elif interest_score <= 25:
        parts.append(f"Low interest: {interest_rating}")
    if tier_label:
        parts.append(f"Tier: {tier_label}")
    if social_fit.of > 0:
        parts.append(f"Knows {social_fit.knows}/{social_fit.of} invitees")
    if attendance_rate != "0/0":
        parts.append(f"Attendance: {attendance_rate}")
    if not available:
        parts.append("Unavailable")
    return " · ".join(parts)


def _activity_ratings(db: Database, user_id: str, activity_id: Optional[str]) -> dict[str, int]:
    if not activity_id:
        return {}
    stmt = (
        select(FriendActivityRow.friend_id, FriendActivityRow.rating)
        .join(FriendRow, FriendActivityRow.friend_id == FriendRow.id)
        .where(FriendRow.user_id == user_id, FriendActivityRow.activity_id == activity_id)
    )
    with db.Session() as session:
        return {row.friend_id: row.rating for row in session.execute(stmt).all()}


def _invitation_history(db: Database, user_id: str) -> dict[str, list[PastInvitation]]:
    stmt = (
        select(
            EventInvitationRow.friend_id,
            EventInvitationRow.event_id,
            EventInvitationRow.status,
            EventInvitationRow.attended,
        )
        .join(EventRow, EventInvitationRow.event_id == EventRow.id)
        .where(EventRow.user_id == user_id)
    )
    history: dict[str, list[PastInvitation]] = {}
    with db.Session() as session:
        for row in session.execute(stmt).all():
            history.setdefault(row.friend_id, []).append(
                PastInvitation(event_id=row.event_id, status=row.status, attended=row.attended)
            )
    return history


def _recent_event_ids(db: Database, user_id: str, exclude_event_id: str) -> list[str]:
    with db.Session() as session:
        return list(
            session.execute(
                select(EventRow.id)
                .where(EventRow.user_id == user_id, EventRow.id != exclude_event_id)
                .order_by(EventRow.created_at.desc())
                .limit(RECENT_EVENT_LIMIT)
            ).scalars().all()
        )


def get_recommendations(
    db: Database, event_id: str, user_id: str
) -> list[FriendRecommendation]:
    """Every friend of the user ranked for the event, best first. [] if not found."""
    event = events.get_event(db, event_id, user_id)
    if event is None:
        return []

    with db.Session() as session:
        invitees = {
            row.friend_id: row
            for row in session.execute(
                select(
                    EventInvitationRow.id,
                    EventInvitationRow.friend_id,
                    EventInvitationRow.status,
                ).where(EventInvitationRow.event_id == event_id)
            ).all()
        }

    ratings = _activity_ratings(db, user_id, event.activity_id)
    availabilities = get_availabilities_for_user(db, user_id)
    connection_map = get_connection_strengths(db, user_id)
    history = _invitation_history(db, user_id)
    recent_ids = _recent_event_ids(db, user_id, event_id)

    tier_orders = [t.sort_order for t in closeness.get_closeness_tiers(db, user_id)]
    min_order = min(tier_orders, default=0)
    max_order = max(tier_orders, default=0)
    weights = VIBE_WEIGHTS.get(event.vibe or "balanced", VIBE_WEIGHTS["balanced"])

    recommendations = []
    for friend in friends.get_friends(db, user_id):
        rating = ratings.get(friend.id)
        interest_score = score_activity_interest(rating)
        interest_rating = ACTIVITY_RATING_LABELS.get(rating, "Unknown") if rating else "No rating"
        closeness_score = score_closeness(friend.tier_sort_order, min_order, max_order)
        social_fit = score_social_fit(
            friend.id,
            (invitee for invitee in invitees if invitee != friend.id),
            connection_map,
            event.vibe,
        )
        attendance = score_attendance(history.get(friend.id, []), event_id, recent_ids)
        available, note = check_availability(availabilities.get(friend.id, []), event.date)

        score = round_half_up(
            interest_score * weights.interest
            + closeness_score * weights.closeness
            + social_fit.score * weights.social_fit
            + attendance.score * weights.attendance
        )
        invitation = invitees.get(friend.id)
        recommendations.append(
            FriendRecommendation(
                friend_id=friend.id,
                friend_name=friend.name,
                tier_label=friend.tier_label,
                tier_color=friend.tier_color,
                score=score,
                interest_rating=interest_rating,
                interest_score=interest_score,
                closeness_score=closeness_score,
                social_fit=social_fit,
                attendance=attendance,
                available=available,
                availability_note=note,
                explanation=build_explanation(
                    interest_rating,
                    interest_score,
                    friend.tier_label,
                    social_fit,
                    attendance.rate,
                    available,
                ),
                is_invited=invitation is not None,
                invitation_id=invitation.id if invitation else None,
                invitation_status=invitation.status if invitation else None,
            )
        )

    recommendations.sort(key=lambda rec: rec.score, reverse=True)
    logger.info(
        "Scored %d friends for event %s (vibe=%s)",
        len(recommendations),
        event_id,
        event.vibe or "balanced",
    )
    return recommendations
