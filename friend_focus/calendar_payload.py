"""
Google Calendar event payloads built from app events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

EVENT_DURATION_HOURS = 1


@dataclass
class CalendarInvitation:
    friend_name: str
    status: str


@dataclass
class CalendarEventInput:
    name: str
    activity_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    invitations: list[CalendarInvitation] = field(default_factory=list)


def _describe(event: CalendarEventInput) -> Optional[str]:
    lines: list[str] = []
    if event.activity_name:
        lines.append(f"Activity: {event.activity_name}")
    attending = [inv for inv in event.invitations if inv.status == "attending"]
    if attending:
        lines.append(f"\nGuest list ({len(attending)}):")
        lines.extend(f"  - {inv.friend_name}" for inv in attending)
    return "\n".join(lines) if lines else None


def build_calendar_event_payload(event: CalendarEventInput) -> dict:
    """
    Build a Google Calendar API event resource.

    With both a date and a time the event is timed and lasts one hour; an end
    past midnight rolls onto the next day. With only a date it is an all-day
    event whose end date is exclusive (the following day).

    Raises:
        ValueError: If the event has no date.
    """
    if not event.date:
        raise ValueError("Event has no date")
    start_date = date.fromisoformat(event.date)

    payload: dict = {"summary": event.name}
    description = _describe(event)
    if description:
        payload["description"] = description
    if event.location:
        payload["location"] = event.location

    if event.time:
        hour, minute = (int(part) for part in event.time.split(":")[:2])
        end_hour = hour + EVENT_DURATION_HOURS
        end_date = start_date
        if end_hour >= 24:
            end_hour -= 24
            end_date = start_date + timedelta(days=1)
        payload["start"] = {
            "dateTime": f"{start_date.isoformat()}T{hour:02d}:{minute:02d}:00"
        }
        payload["end"] = {
            "dateTime": f"{end_date.isoformat()}T{end_hour:02d}:{minute:02d}:00"
        }
        return payload

    payload["start"] = {"date": start_date.isoformat()}
    payload["end"] = {"date": (start_date + timedelta(days=1)).isoformat()}
    return payload
