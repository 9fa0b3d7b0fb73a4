"""
HTTP routes for the Friend Focus API.

Every data route resolves the caller's session first and scopes all reads
and writes to that user.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

import requests
from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from friend_focus import (
    activities,
    availability,
    closeness,
    connections,
    events,
    friend_activities,
    friends,
    gift_ideas,
    google_oauth,
    notes,
    recommendations,
)
from friend_focus.auth import AuthSession
from friend_focus.calendar_payload import (
    CalendarEventInput,
    CalendarInvitation,
    build_calendar_event_payload,
)
from friend_focus.config import Settings, get_settings
from friend_focus.db import Database
from friend_focus.dependencies import (
    get_database,
    get_photo_store,
    get_places_client,
    require_session,
)
from friend_focus.places import PlacesClient
from friend_focus.schemas import (
    ActivityRequest,
    ActivityResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    BulkRatingsRequest,
    ClosenessTierRequest,
    ClosenessTierResponse,
    ConnectionCreateRequest,
    ConnectionGraphResponse,
    ConnectionResponse,
    ConnectionUpdateRequest,
    EventDetailResponse,
    EventRequest,
    EventResponse,
    FriendActivityResponse,
    FriendDetailResponse,
    FriendOption,
    FriendRequest,
    FriendResponse,
    GiftIdeaRequest,
    GiftIdeaResponse,
    GoogleStatusResponse,
    HealthResponse,
    InvitationCreateRequest,
    InvitationResponse,
    InvitationUpdateRequest,
    NoteCreateRequest,
    NoteResponse,
    NoteType,
    NoteUpdateRequest,
    PlacesResponse,
    RatingRequest,
    RecommendationResponse,
    ReorderRequest,
    StatusResponse,
)
from friend_focus.storage import PhotoStore, content_type_for, is_safe_filename

logger = logging.getLogger(__name__)

router = APIRouter()

PHOTO_CACHE_CONTROL = "public, max-age=86400"


def _require_friend(db: Database, friend_id: str, user_id: str) -> friends.FriendRecord:
    friend = friends.get_friend(db, friend_id, user_id)
    if not friend:
        raise HTTPException(status_code=404, detail="Friend not found")
    return friend


def _require_event(db: Database, event_id: str, user_id: str) -> events.EventRecord:
    event = events.get_event(db, event_id, user_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _check_references(
    db: Database,
    user_id: str,
    *,
    activity_id: Optional[str] = None,
    tier_id: Optional[str] = None,
) -> None:
    if activity_id and not activities.get_activity(db, activity_id, user_id):
        raise HTTPException(status_code=404, detail="Activity not found")
    if tier_id and not closeness.get_closeness_tier(db, tier_id, user_id):
        raise HTTPException(status_code=404, detail="Closeness tier not found")


# System


@router.get("/health", response_model=HealthResponse)
def health(db: Database = Depends(get_database)):
    try:
        db.ping()
    except SQLAlchemyError:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "Database connection failed"},
        )
    return HealthResponse(
        status="ok", timestamp=datetime.now(timezone.utc).isoformat()
    )


@router.get("/photos/{filename}")
def get_photo(
    filename: str,
    session: AuthSession = Depends(require_session),
    store: PhotoStore = Depends(get_photo_store),
):
    if not is_safe_filename(filename):
        raise HTTPException(status_code=400, detail="Invalid filename")
    if not store.exists(filename):
        raise HTTPException(status_code=404, detail="Not found")
    try:
        data = store.read(filename)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    return Response(
        content=data,
        media_type=content_type_for(filename),
        headers={"Cache-Control": PHOTO_CACHE_CONTROL},
    )


@router.get(
    "/places", response_model=PlacesResponse, response_model_exclude_none=True
)
def places(
    input: Optional[str] = Query(None),
    place_id: Optional[str] = Query(None, alias="placeId"),
    session: AuthSession = Depends(require_session),
    client: PlacesClient = Depends(get_places_client),
):
    if not client.enabled:
        return PlacesResponse(suggestions=[], enabled=False)
    try:
        if place_id:
            details = client.get_place_details(place_id)
            return PlacesResponse(details=asdict(details) if details else None)
        if input:
            suggestions = client.autocomplete(input)
            return PlacesResponse(
                suggestions=[asdict(s) for s in suggestions], enabled=True
            )
    except requests.RequestException:
        logger.exception("Places lookup failed")
        raise HTTPException(status_code=500, detail="Places lookup failed")
    return PlacesResponse(suggestions=[], enabled=True)


@router.get("/google-scope-upgrade")
def google_scope_upgrade(
    callback_url: Optional[str] = Query(None, alias="callbackURL"),
    session: AuthSession = Depends(require_session),
    settings: Settings = Depends(get_settings),
):
    if not settings.google_oauth_configured:
        raise HTTPException(status_code=500, detail="Google not configured")
    url = google_oauth.build_scope_upgrade_url(
        settings.google_client_id, settings.auth_url, callback_url or "/profile"
    )
    return RedirectResponse(url, status_code=302)


@router.get("/google-status", response_model=GoogleStatusResponse)
def google_status(
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    user_id = session.user.id
    return GoogleStatusResponse(
        connected=google_oauth.get_google_tokens(db, user_id) is not None,
        calendar=google_oauth.has_google_scopes(
            db, user_id, [google_oauth.CALENDAR_EVENTS_SCOPE]
        ),
        contacts=google_oauth.has_google_scopes(
            db, user_id, [google_oauth.CONTACTS_SCOPE]
        ),
    )


# Activities


@router.get("/activities", response_model=list[ActivityResponse])
def list_activities(
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return [
        ActivityResponse(**asdict(a))
        for a in activities.get_activities(db, session.user.id)
    ]


@router.post("/activities", response_model=ActivityResponse, status_code=201)
def create_activity(
    payload: ActivityRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    try:
        created = activities.create_activity(
            db, session.user.id, **payload.model_dump()
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Activity already exists")
    return ActivityResponse(**asdict(created))


@router.post("/activities/reorder", response_model=StatusResponse)
def reorder_activities(
    payload: ReorderRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    activities.reorder_activities(db, payload.ordered_ids, session.user.id)
    return StatusResponse()


@router.put("/activities/{activity_id}", response_model=StatusResponse)
def update_activity(
    activity_id: str,
    payload: ActivityRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    try:
        activities.update_activity(
            db, activity_id, session.user.id, **payload.model_dump()
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Activity already exists")
    return StatusResponse()


@router.delete("/activities/{activity_id}", response_model=StatusResponse)
def delete_activity(
    activity_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    activities.delete_activity(db, activity_id, session.user.id)
    return StatusResponse()


# Closeness tiers


@router.get("/closeness-tiers", response_model=list[ClosenessTierResponse])
def list_closeness_tiers(
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return [
        ClosenessTierResponse(**asdict(t))
        for t in closeness.get_closeness_tiers(db, session.user.id)
    ]


@router.post("/closeness-tiers", response_model=ClosenessTierResponse, status_code=201)
def create_closeness_tier(
    payload: ClosenessTierRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    created = closeness.create_closeness_tier(
        db, session.user.id, label=payload.label, color=payload.color or None
    )
    return ClosenessTierResponse(**asdict(created))


@router.post("/closeness-tiers/reorder", response_model=StatusResponse)
def reorder_closeness_tiers(
    payload: ReorderRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    closeness.reorder_closeness_tiers(db, payload.ordered_ids, session.user.id)
    return StatusResponse()


@router.put("/closeness-tiers/{tier_id}", response_model=StatusResponse)
def update_closeness_tier(
    tier_id: str,
    payload: ClosenessTierRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    closeness.update_closeness_tier(
        db, tier_id, session.user.id, label=payload.label, color=payload.color or None
    )
    return StatusResponse()


@router.delete("/closeness-tiers/{tier_id}", response_model=StatusResponse)
def delete_closeness_tier(
    tier_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    closeness.delete_closeness_tier(db, tier_id, session.user.id)
    return StatusResponse()


# Friends


@router.get("/friends", response_model=list[FriendResponse])
def list_friends(
    search: Optional[str] = Query(None),
    tier_id: Optional[str] = Query(None),
    sort_by: str = Query("name", pattern="^(name|closeness|created_at)$"),
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    records = friends.get_friends(
        db, session.user.id, search=search, tier_id=tier_id, sort_by=sort_by
    )
    return [FriendResponse(**asdict(f)) for f in records]


@router.get("/friend-options", response_model=list[FriendOption])
def list_friend_options(
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return [
        FriendOption(id=friend_id, name=name)
        for friend_id, name in friends.get_friend_options(db, session.user.id)
    ]


@router.post("/friends", response_model=FriendResponse, status_code=201)
def create_friend(
    payload: FriendRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _check_references(db, session.user.id, tier_id=payload.closeness_tier_id)
    created = friends.create_friend(db, session.user.id, payload.model_dump())
    return FriendResponse(**asdict(created))


@router.get("/friends/{friend_id}", response_model=FriendDetailResponse)
def get_friend(
    friend_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    detail = friends.get_friend_detail(db, friend_id, session.user.id)
    if not detail:
        raise HTTPException(status_code=404, detail="Friend not found")
    return FriendDetailResponse(**asdict(detail))


@router.put("/friends/{friend_id}", response_model=StatusResponse)
def update_friend(
    friend_id: str,
    payload: FriendRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _check_references(db, session.user.id, tier_id=payload.closeness_tier_id)
    friends.update_friend(
        db, friend_id, session.user.id, payload.model_dump(exclude={"photo"})
    )
    return StatusResponse()


@router.delete("/friends/{friend_id}", response_model=StatusResponse)
def delete_friend(
    friend_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
    store: PhotoStore = Depends(get_photo_store),
):
    friend = _require_friend(db, friend_id, session.user.id)
    friends.delete_friend(db, friend_id, session.user.id)
    if friend.photo:
        store.delete(friend.photo)
    return StatusResponse()


@router.put("/friends/{friend_id}/photo", response_model=FriendResponse)
async def upload_friend_photo(
    friend_id: str,
    file: UploadFile = File(...),
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
    store: PhotoStore = Depends(get_photo_store),
):
    _require_friend(db, friend_id, session.user.id)
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty photo upload")
    filename = store.save(friend_id, data)
    friends.set_friend_photo(db, friend_id, session.user.id, filename)
    return FriendResponse(**asdict(_require_friend(db, friend_id, session.user.id)))


# Friend activity ratings


@router.get(
    "/friends/{friend_id}/activities", response_model=list[FriendActivityResponse]
)
def list_friend_activities(
    friend_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    return [
        FriendActivityResponse(**asdict(r))
        for r in friend_activities.get_friend_activities(db, friend_id)
    ]


@router.put(
    "/friends/{friend_id}/activities", response_model=list[FriendActivityResponse]
)
def replace_friend_activities(
    friend_id: str,
    payload: BulkRatingsRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    owned = {a.id for a in activities.get_activities(db, session.user.id)}
    if any(r.activity_id not in owned for r in payload.ratings):
        raise HTTPException(status_code=404, detail="Activity not found")
    friend_activities.bulk_upsert_friend_activities(
        db,
        friend_id,
        [
            friend_activities.RatingInput(activity_id=r.activity_id, rating=r.rating)
            for r in payload.ratings
        ],
    )
    return [
        FriendActivityResponse(**asdict(r))
        for r in friend_activities.get_friend_activities(db, friend_id)
    ]


@router.put(
    "/friends/{friend_id}/activities/{activity_id}",
    response_model=FriendActivityResponse,
)
def rate_friend_activity(
    friend_id: str,
    activity_id: str,
    payload: RatingRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    if not activities.get_activity(db, activity_id, session.user.id):
        raise HTTPException(status_code=404, detail="Activity not found")
    record = friend_activities.upsert_friend_activity(
        db, friend_id, activity_id, payload.rating
    )
    return FriendActivityResponse(**asdict(record))


@router.delete(
    "/friends/{friend_id}/activities/{activity_id}", response_model=StatusResponse
)
def clear_friend_activity(
    friend_id: str,
    activity_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    friend_activities.delete_friend_activity(db, friend_id, activity_id)
    return StatusResponse()


# Notes


@router.get("/notes", response_model=list[NoteResponse])
def list_notes(
    type: Optional[NoteType] = Query(None),
    friend_id: Optional[str] = Query(None),
    event_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    filters = notes.NoteFilters(
        type=type, friend_id=friend_id, event_id=event_id, search=search
    )
    return [
        NoteResponse(**asdict(n)) for n in notes.get_notes(db, session.user.id, filters)
    ]


@router.post("/notes", response_model=NoteResponse, status_code=201)
def create_note(
    payload: NoteCreateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    if payload.friend_id:
        _require_friend(db, payload.friend_id, session.user.id)
    if payload.event_id:
        _require_event(db, payload.event_id, session.user.id)
    created = notes.create_note(db, session.user.id, **payload.model_dump())
    return NoteResponse(**asdict(created))


@router.get("/notes/{note_id}", response_model=NoteResponse)
def get_note(
    note_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    note = notes.get_note(db, note_id, session.user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteResponse(**asdict(note))


@router.put("/notes/{note_id}", response_model=StatusResponse)
def update_note(
    note_id: str,
    payload: NoteUpdateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    notes.update_note(db, note_id, payload.content, session.user.id)
    return StatusResponse()


@router.delete("/notes/{note_id}", response_model=StatusResponse)
def delete_note(
    note_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    notes.delete_note(db, note_id, session.user.id)
    return StatusResponse()


# Events


@router.get("/events", response_model=list[EventResponse])
def list_events(
    status: Optional[str] = Query(None),
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return [
        EventResponse(**asdict(e))
        for e in events.get_events(db, session.user.id, status=status)
    ]


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(
    payload: EventRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _check_references(db, session.user.id, activity_id=payload.activity_id)
    created = events.create_event(db, session.user.id, payload.model_dump())
    return EventResponse(**asdict(created))


@router.get("/events/{event_id}", response_model=EventDetailResponse)
def get_event(
    event_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    detail = events.get_event_detail(db, event_id, session.user.id)
    if not detail:
        raise HTTPException(status_code=404, detail="Event not found")
    return EventDetailResponse(**asdict(detail))


@router.put("/events/{event_id}", response_model=StatusResponse)
def update_event(
    event_id: str,
    payload: EventRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _check_references(db, session.user.id, activity_id=payload.activity_id)
    events.update_event(db, event_id, session.user.id, payload.model_dump())
    return StatusResponse()


@router.delete("/events/{event_id}", response_model=StatusResponse)
def delete_event(
    event_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    events.delete_event(db, event_id, session.user.id)
    return StatusResponse()


@router.post(
    "/events/{event_id}/invitations",
    response_model=InvitationResponse,
    status_code=201,
)
def add_invitation(
    event_id: str,
    payload: InvitationCreateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_event(db, event_id, session.user.id)
    friend = _require_friend(db, payload.friend_id, session.user.id)
    try:
        invitation = events.add_invitation(db, event_id, payload.friend_id)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Friend already invited")
    invitation.friend_name = friend.name
    return InvitationResponse(**asdict(invitation))


@router.get("/events/{event_id}/calendar-payload", response_model=dict)
def calendar_payload(
    event_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    detail = events.get_event_detail(db, event_id, session.user.id)
    if not detail:
        raise HTTPException(status_code=404, detail="Event not found")
    event = detail.event
    try:
        return build_calendar_event_payload(
            CalendarEventInput(
                name=event.name,
                activity_name=event.activity_name,
                date=event.date,
                time=event.time,
                location=event.location,
                invitations=[
                    CalendarInvitation(friend_name=inv.friend_name or "", status=inv.status)
                    for inv in detail.invitations
                ],
            )
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/invitations/{invitation_id}", response_model=StatusResponse)
def update_invitation(
    invitation_id: str,
    payload: InvitationUpdateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    updated = events.update_invitation(
        db, invitation_id, session.user.id, payload.model_dump(exclude_unset=True)
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Invitation not found")
    return StatusResponse()


@router.delete("/invitations/{invitation_id}", response_model=StatusResponse)
def remove_invitation(
    invitation_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    events.remove_invitation(db, invitation_id, session.user.id)
    return StatusResponse()


@router.get(
    "/events/{event_id}/recommendations",
    response_model=list[RecommendationResponse],
)
def event_recommendations(
    event_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_event(db, event_id, session.user.id)
    return [
        RecommendationResponse(**asdict(rec))
        for rec in recommendations.get_recommendations(db, event_id, session.user.id)
    ]


# Gift ideas


@router.get("/friends/{friend_id}/gift-ideas", response_model=list[GiftIdeaResponse])
def list_gift_ideas(
    friend_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    return [GiftIdeaResponse(**asdict(g)) for g in gift_ideas.get_gift_ideas(db, friend_id)]


@router.post(
    "/friends/{friend_id}/gift-ideas", response_model=GiftIdeaResponse, status_code=201
)
def create_gift_idea(
    friend_id: str,
    payload: GiftIdeaRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    created = gift_ideas.create_gift_idea(
        db, friend_id, session.user.id, payload.model_dump(mode="json")
    )
    if created is None:
        raise HTTPException(status_code=404, detail="Friend not found")
    return GiftIdeaResponse(**asdict(created))


@router.put("/gift-ideas/{gift_id}", response_model=StatusResponse)
def update_gift_idea(
    gift_id: str,
    payload: GiftIdeaRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    if not gift_ideas.update_gift_idea(
        db, gift_id, session.user.id, payload.model_dump(mode="json")
    ):
        raise HTTPException(status_code=404, detail="Gift not found")
    return StatusResponse()


@router.post("/gift-ideas/{gift_id}/toggle-purchased", response_model=GiftIdeaResponse)
def toggle_gift_purchased(
    gift_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    gift = gift_ideas.toggle_gift_purchased(db, gift_id, session.user.id)
    if gift is None:
        raise HTTPException(status_code=404, detail="Gift not found")
    return GiftIdeaResponse(**asdict(gift))


@router.delete("/gift-ideas/{gift_id}", response_model=StatusResponse)
def delete_gift_idea(
    gift_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    gift_ideas.delete_gift_idea(db, gift_id, session.user.id)
    return StatusResponse()


# Availability


@router.get(
    "/friends/{friend_id}/availability", response_model=list[AvailabilityResponse]
)
def list_availability(
    friend_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    _require_friend(db, friend_id, session.user.id)
    return [
        AvailabilityResponse(**asdict(a))
        for a in availability.get_availabilities(db, friend_id)
    ]


@router.post(
    "/friends/{friend_id}/availability",
    response_model=AvailabilityResponse,
    status_code=201,
)
def create_availability(
    friend_id: str,
    payload: AvailabilityRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    created = availability.create_availability(
        db, friend_id, session.user.id, **payload.model_dump()
    )
    if created is None:
        raise HTTPException(status_code=404, detail="Friend not found")
    return AvailabilityResponse(**asdict(created))


@router.delete("/availability/{availability_id}", response_model=StatusResponse)
def delete_availability(
    availability_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    availability.delete_availability(db, availability_id, session.user.id)
    return StatusResponse()


# Friend connections


@router.get("/connections", response_model=list[ConnectionResponse])
def list_connections(
    friend_id: Optional[str] = Query(default=None),
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return [
        ConnectionResponse(**asdict(c))
        for c in connections.get_connections(db, session.user.id, friend_id)
    ]


@router.post("/connections", response_model=ConnectionResponse, status_code=201)
def create_connection(
    payload: ConnectionCreateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    data = payload.model_dump(exclude={"friend_a_id", "friend_b_id"})
    try:
        created = connections.create_connection(
            db, session.user.id, payload.friend_a_id, payload.friend_b_id, data
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Connection already exists")
    if created is None:
        raise HTTPException(status_code=404, detail="Friend not found")
    return ConnectionResponse(**asdict(created))


@router.get("/connection-graph", response_model=ConnectionGraphResponse)
def connection_graph(
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    return ConnectionGraphResponse(**asdict(connections.get_graph_data(db, session.user.id)))


@router.put("/connections/{connection_id}", response_model=StatusResponse)
def update_connection(
    connection_id: str,
    payload: ConnectionUpdateRequest,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    if not connections.update_connection(
        db, connection_id, session.user.id, payload.model_dump()
    ):
        raise HTTPException(status_code=404, detail="Connection not found")
    return StatusResponse()


@router.delete("/connections/{connection_id}", response_model=StatusResponse)
def delete_connection(
    connection_id: str,
    session: AuthSession = Depends(require_session),
    db: Database = Depends(get_database),
):
    connections.delete_connection(db, connection_id, session.user.id)
    return StatusResponse()
