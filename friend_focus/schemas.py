"""
Pydantic schemas for the Friend Focus API.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, model_validator

NoteType = Literal["friend", "event", "journal"]
EventStatus = Literal["planning", "finalized", "completed", "cancelled"]
InvitationStatus = Literal["not_invited", "invited", "attending", "declined"]
EventVibe = Literal["tight_knit", "mixer", "activity_focused", "balanced"]
CareModeReminder = Literal["daily", "every_3_days", "weekly"]

# Empty string is allowed and clears the field.
OPTIONAL_DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2})?$"
OPTIONAL_TIME_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d)?$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class _Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class StatusResponse(BaseModel):
    status: Literal["ok"] = "ok"


class HealthResponse(BaseModel):
    status: Literal["ok"]
    timestamp: str


class ReorderRequest(BaseModel):
    ordered_ids: list[str]


# Activities


class ActivityRequest(_Input):
    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_default: bool = False


class ActivityResponse(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    is_default: bool
    sort_order: int
    user_id: str
    created_at: float
    rating_count: int = 0


# Closeness tiers


class ClosenessTierRequest(_Input):
    label: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None


class ClosenessTierResponse(BaseModel):
    id: str
    label: str
    sort_order: int
    color: Optional[str] = None
    user_id: str
    created_at: float
    friend_count: int = 0


# Friend activity ratings


class RatingItem(BaseModel):
    activity_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)


class BulkRatingsRequest(BaseModel):
    ratings: list[RatingItem]


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class FriendActivityResponse(BaseModel):
    id: str
    friend_id: str
    activity_id: str
    rating: int
    activity_name: Optional[str] = None
    activity_icon: Optional[str] = None
    activity_sort_order: Optional[int] = None


# Notes


class NoteCreateRequest(_Input):
    content: str = Field(..., min_length=1, max_length=5000)
    type: NoteType = "journal"
    friend_id: Optional[str] = None
    event_id: Optional[str] = None


class NoteUpdateRequest(_Input):
    content: str = Field(..., min_length=1, max_length=5000)


class NoteResponse(BaseModel):
    id: str
    content: str
    type: str
    friend_id: Optional[str] = None
    friend_name: Optional[str] = None
    event_id: Optional[str] = None
    event_name: Optional[str] = None
    user_id: str
    created_at: float
    updated_at: float


# Friends


class FriendRequest(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    photo: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[Union[EmailStr, Literal[""]]] = None
    social_handles: Optional[str] = None
    birthday: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=200)
    love_language: Optional[str] = Field(default=None, max_length=100)
    favorite_food: Optional[str] = Field(default=None, max_length=200)
    dietary_restrictions: Optional[str] = Field(default=None, max_length=200)
    employer: Optional[str] = Field(default=None, max_length=200)
    occupation: Optional[str] = Field(default=None, max_length=200)
    personal_notes: Optional[str] = None
    closeness_tier_id: Optional[str] = None
    care_mode_active: bool = False
    care_mode_note: Optional[str] = Field(default=None, max_length=500)
    care_mode_reminder: Optional[Union[CareModeReminder, Literal[""]]] = None
    care_mode_started_at: Optional[str] = None


class FriendResponse(BaseModel):
    id: str
    name: str
    photo: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_handles: Optional[str] = None
    birthday: Optional[str] = None
    address: Optional[str] = None
    love_language: Optional[str] = None
    favorite_food: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    employer: Optional[str] = None
    occupation: Optional[str] = None
    personal_notes: Optional[str] = None
    care_mode_active: bool
    care_mode_note: Optional[str] = None
    care_mode_reminder: Optional[str] = None
    care_mode_started_at: Optional[str] = None
    closeness_tier_id: Optional[str] = None
    user_id: str
    created_at: float
    updated_at: float
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None
    tier_sort_order: Optional[int] = None


class FriendInvitationResponse(BaseModel):
    id: str
    status: str
    attended: Optional[bool] = None
    event_id: str
    event_name: str
    event_date: Optional[str] = None
    event_status: str


class FriendDetailResponse(BaseModel):
    friend: FriendResponse
    activity_ratings: list[FriendActivityResponse]
    invitations: list[FriendInvitationResponse]
    notes: list[NoteResponse]


class FriendOption(BaseModel):
    id: str
    name: str


# Events


class EventRequest(_Input):
    name: str = Field(..., min_length=1, max_length=200)
    activity_id: Optional[str] = None
    date: Optional[str] = Field(default=None, pattern=OPTIONAL_DATE_PATTERN)
    time: Optional[str] = Field(default=None, pattern=OPTIONAL_TIME_PATTERN)
    location: Optional[str] = Field(default=None, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1, le=1000)
    vibe: Optional[Union[EventVibe, Literal[""]]] = None
    status: EventStatus = "planning"


class EventResponse(BaseModel):
    id: str
    name: str
    activity_id: Optional[str] = None
    activity_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    vibe: Optional[str] = None
    status: str
    user_id: str
    created_at: float
    updated_at: float
    invitation_count: int = 0


class InvitationCreateRequest(BaseModel):
    friend_id: str = Field(..., min_length=1)


class InvitationUpdateRequest(BaseModel):
    # Only fields present in the body are applied; null clears `attended` only.
    status: InvitationStatus = "not_invited"
    attended: Optional[bool] = None
    must_invite: bool = False
    must_exclude: bool = False


class InvitationResponse(BaseModel):
    id: str
    event_id: str
    friend_id: str
    friend_name: Optional[str] = None
    status: str
    attended: Optional[bool] = None
    must_invite: bool
    must_exclude: bool
    created_at: float
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None


class EventDetailResponse(BaseModel):
    event: EventResponse
    invitations: list[InvitationResponse]
    notes: list[NoteResponse]


# Gift ideas


class GiftIdeaRequest(_Input):
    description: str = Field(..., min_length=1, max_length=500)
    url: Optional[Union[HttpUrl, Literal[""]]] = None
    price: Optional[str] = Field(default=None, max_length=50)


class GiftIdeaResponse(BaseModel):
    id: str
    friend_id: str
    description: str
    url: Optional[str] = None
    price: Optional[str] = None
    purchased: bool
    purchased_at: Optional[str] = None
    created_at: float


# Availability


class AvailabilityRequest(_Input):
    label: str = Field(..., min_length=1, max_length=200)
    start_date: str = Field(..., pattern=DATE_PATTERN)
    end_date: str = Field(..., pattern=DATE_PATTERN)


class AvailabilityResponse(BaseModel):
    id: str
    friend_id: str
    label: str
    start_date: str
    end_date: str
    created_at: float


# Friend connections


class ConnectionUpdateRequest(_Input):
    type: Optional[str] = Field(default=None, max_length=50)
    strength: int = Field(default=3, ge=1, le=5)
    how_they_met: Optional[str] = Field(default=None, max_length=200)
    start_date: Optional[str] = Field(default=None, pattern=OPTIONAL_DATE_PATTERN)
    end_date: Optional[str] = Field(default=None, pattern=OPTIONAL_DATE_PATTERN)
    notes: Optional[str] = Field(default=None, max_length=500)


class ConnectionCreateRequest(ConnectionUpdateRequest):
    friend_a_id: str = Field(..., min_length=1)
    friend_b_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_distinct_friends(self):
        if self.friend_a_id == self.friend_b_id:
            raise ValueError("Cannot connect a friend to themselves")
        return self


class ConnectionResponse(BaseModel):
    id: str
    friend_a_id: str
    friend_b_id: str
    type: Optional[str] = None
    strength: int
    how_they_met: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: float
    updated_at: float


class GraphNodeResponse(BaseModel):
    id: str
    name: str
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None


class GraphEdgeResponse(BaseModel):
    friend_a_id: str
    friend_b_id: str
    strength: int
    type: Optional[str] = None


class ConnectionGraphResponse(BaseModel):
    friends: list[GraphNodeResponse]
    connections: list[GraphEdgeResponse]


# Guest recommendations


class SocialFitResponse(BaseModel):
    knows: int
    of: int
    score: int


class AttendanceResponse(BaseModel):
    rate: str
    score: int


class RecommendationResponse(BaseModel):
    friend_id: str
    friend_name: str
    tier_label: Optional[str] = None
    tier_color: Optional[str] = None
    score: int
    interest_rating: str
    interest_score: int
    closeness_score: int
    social_fit: SocialFitResponse
    attendance: AttendanceResponse
    available: bool
    availability_note: Optional[str] = None
    explanation: str
    is_invited: bool
    invitation_id: Optional[str] = None
    invitation_status: Optional[str] = None


# Integrations


class PlaceSuggestionResponse(BaseModel):
    place_id: str
    description: str
    main_text: str
    secondary_text: str


class PlaceDetailsResponse(BaseModel):
    place_id: str
    formatted_address: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class PlacesResponse(BaseModel):
    suggestions: Optional[list[PlaceSuggestionResponse]] = None
    enabled: Optional[bool] = None
    details: Optional[PlaceDetailsResponse] = None


class GoogleStatusResponse(BaseModel):
    connected: bool
    calendar: bool
    contacts: bool
