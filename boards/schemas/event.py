"""
Event schema definitions.
"""
from datetime import datetime
from typing import Any, ClassVar, List, Optional, Tuple

from pydantic import Field, HttpUrl, TypeAdapter, field_validator, model_validator

from boards.models.feedback import RSVP_STATUSES
from boards.schemas.common import (
    CamelModel,
    StrictCamelModel,
    check_length,
    normalize_vibes,
    trimmed,
    utc_aware,
)

EVENT_TYPES = (
    'art',
    'community',
    'concert',
    'dance',
    'festival',
    'food',
    'market',
    'meetup',
    'music',
    'networking',
    'party',
    'sports',
    'talk',
    'theatre',
    'wellness',
    'workshop',
    'other',
)

AGE_RESTRICTIONS = ('All ages', '13+', '16+', '18+', '19+', '21+')

MAX_TITLE_LENGTH = 140
MAX_DESCRIPTION_LENGTH = 5000
MAX_VENUE_NAME_LENGTH = 140
MAX_ADDRESS_LENGTH = 280
MAX_NEIGHBORHOOD_LENGTH = 120
MAX_CAPACITY = 500000

_url_adapter = TypeAdapter(HttpUrl)


def _event_type(value: Any, default: Optional[str]) -> Optional[str]:
    value = trimmed(value)
    if value is None:
        return default
    value = value.lower()
    if value not in EVENT_TYPES:
        raise ValueError("eventType is not supported")
    return value


def _age_restriction(value: Any) -> Optional[str]:
    value = trimmed(value)
    if value is None:
        return None
    for option in AGE_RESTRICTIONS:
        if option.lower() == value.lower():
            return option
    raise ValueError("ageRestriction is not supported")


def _description(value: Any) -> str:
    value = "" if value is None else str(value)
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return value.strip()


def _ticket_link(value: Any) -> Optional[str]:
    value = trimmed(value)
    if value is None:
        return None
    try:
        _url_adapter.validate_python(value)
    except ValueError:
        raise ValueError("Ticket link must be a valid URL") from None
    return value


def _capacity(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("Capacity must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError("Capacity must be a number") from None
    if not number.is_integer():
        raise ValueError("Capacity must be an integer")
    if number <= 0:
        raise ValueError("Capacity must be greater than zero")
    if number > MAX_CAPACITY:
        raise ValueError(f"Capacity must be less than or equal to {MAX_CAPACITY}")
    return int(number)


def _coordinate(value: Any, label: str, bound: float) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number") from None
    if not -bound <= number <= bound:
        raise ValueError(f"{label} must be between -{bound:g} and {bound:g}")
    return number


def latitude(value: Any) -> Optional[float]:
    return _coordinate(value, "Latitude", 90)


def longitude(value: Any) -> Optional[float]:
    return _coordinate(value, "Longitude", 180)


class EventCreate(StrictCamelModel):
    """Schema for creating events."""
    title: str
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    venue_name: Optional[str] = None
    address: str
    neighborhood: Optional[str] = None
    latitude: float
    longitude: float
    vibe: List[str] = Field(default_factory=list)
    event_type: str = "other"
    capacity: Optional[int] = None
    age_restriction: Optional[str] = None
    ticket_link: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        v = check_length(trimmed(v), "Title", MAX_TITLE_LENGTH)
        if v is None:
            raise ValueError("Title is required")
        return v

    @field_validator('description', mode='before')
    @classmethod
    def validate_description(cls, v):
        return _description(v)

    @field_validator('venue_name', mode='before')
    @classmethod
    def validate_venue_name(cls, v):
        return check_length(trimmed(v), "Venue name", MAX_VENUE_NAME_LENGTH)

    @field_validator('address', mode='before')
    @classmethod
    def validate_address(cls, v):
        v = check_length(trimmed(v), "Address", MAX_ADDRESS_LENGTH)
        if v is None:
            raise ValueError("Address is required")
        return v

    @field_validator('neighborhood', mode='before')
    @classmethod
    def validate_neighborhood(cls, v):
        return check_length(trimmed(v), "Neighborhood", MAX_NEIGHBORHOOD_LENGTH)

    @field_validator('latitude', mode='before')
    @classmethod
    def validate_latitude(cls, v):
        v = latitude(v)
        if v is None:
            raise ValueError("Latitude is required")
        return v

    @field_validator('longitude', mode='before')
    @classmethod
    def validate_longitude(cls, v):
        v = longitude(v)
        if v is None:
            raise ValueError("Longitude is required")
        return v

    @field_validator('vibe', mode='before')
    @classmethod
    def validate_vibe(cls, v):
        return normalize_vibes(v)

    @field_validator('event_type', mode='before')
    @classmethod
    def validate_event_type(cls, v):
        return _event_type(v, default="other")

    @field_validator('capacity', mode='before')
    @classmethod
    def validate_capacity(cls, v):
        return _capacity(v)

    @field_validator('age_restriction', mode='before')
    @classmethod
    def validate_age_restriction(cls, v):
        return _age_restriction(v)

    @field_validator('ticket_link', mode='before')
    @classmethod
    def validate_ticket_link(cls, v):
        return _ticket_link(v)

    @model_validator(mode='after')
    def validate_end_time(self):
        if self.end_time is not None and utc_aware(self.end_time) < utc_aware(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class EventUpdate(StrictCamelModel):
    """Schema for updating events. Only fields present in the payload are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    venue_name: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    vibe: Optional[List[str]] = None
    event_type: Optional[str] = None
    capacity: Optional[int] = None
    age_restriction: Optional[str] = None
    ticket_link: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator('title', mode='before')
    @classmethod
    def validate_title(cls, v):
        v = check_length(trimmed(v), "Title", MAX_TITLE_LENGTH)
        if v is None:
            raise ValueError("Title must not be empty")
        return v

    @field_validator('description', mode='before')
    @classmethod
    def validate_description(cls, v):
        return _description(v)

    @field_validator('venue_name', mode='before')
    @classmethod
    def validate_venue_name(cls, v):
        return check_length(trimmed(v), "Venue name", MAX_VENUE_NAME_LENGTH)

    @field_validator('address', mode='before')
    @classmethod
    def validate_address(cls, v):
        v = check_length(trimmed(v), "Address", MAX_ADDRESS_LENGTH)
        if v is None:
            raise ValueError("Address must not be empty")
        return v

    @field_validator('neighborhood', mode='before')
    @classmethod
    def validate_neighborhood(cls, v):
        return check_length(trimmed(v), "Neighborhood", MAX_NEIGHBORHOOD_LENGTH)

    @field_validator('latitude', mode='before')
    @classmethod
    def validate_latitude(cls, v):
        return latitude(v)

    @field_validator('longitude', mode='before')
    @classmethod
    def validate_longitude(cls, v):
        return longitude(v)

    @field_validator('vibe', mode='before')
    @classmethod
    def validate_vibe(cls, v):
        return normalize_vibes(v)

    @field_validator('event_type', mode='before')
    @classmethod
    def validate_event_type(cls, v):
        return _event_type(v, default=None)

    @field_validator('capacity', mode='before')
    @classmethod
    def validate_capacity(cls, v):
        return _capacity(v)

    @field_validator('age_restriction', mode='before')
    @classmethod
    def validate_age_restriction(cls, v):
        return _age_restriction(v)

    @field_validator('ticket_link', mode='before')
    @classmethod
    def validate_ticket_link(cls, v):
        return _ticket_link(v)

    # Columns that cannot be cleared with an explicit null
    REQUIRED_COLUMNS: ClassVar[Tuple[str, ...]] = ('title', 'start_time', 'address', 'latitude', 'longitude', 'event_type')

    def changes(self) -> dict:
        """Fields explicitly present in the payload, minus nulls on required columns."""
        data = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in data.items()
            if not (value is None and key in self.REQUIRED_COLUMNS)
        }


class HostSummary(CamelModel):
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    trust_score: Optional[float] = None


class EventResponse(CamelModel):
    """Schema for event responses."""
    id: str
    title: str
    description: str
    image_url: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    venue_name: Optional[str] = None
    address: str
    neighborhood: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    vibe: List[str] = Field(default_factory=list)
    event_type: str
    capacity: Optional[int] = None
    age_restriction: Optional[str] = None
    ticket_link: Optional[str] = None
    popularity_score: float = 0.0
    trust_score: Optional[float] = None
    host_id: str
    host: Optional[HostSummary] = None
    rsvp_count: int = 0
    distance_km: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('start_time', 'end_time', 'created_at', 'updated_at')
    @classmethod
    def ensure_timezone(cls, v):
        return utc_aware(v)


class RSVPRequest(StrictCamelModel):
    status: str = "going"

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, v):
        v = trimmed(v) or "going"
        if v not in RSVP_STATUSES:
            raise ValueError("status is not supported")
        return v


class RSVPResponse(CamelModel):
    id: str
    user_id: str
    event_id: str
    status: str
    created_at: Optional[datetime] = None

    @field_validator('created_at')
    @classmethod
    def ensure_timezone(cls, v):
        return utc_aware(v)


class AttendeeSummary(CamelModel):
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None


class AttendeeResponse(RSVPResponse):
    user: AttendeeSummary


class EmbeddingDimension(CamelModel):
    dimension: int
    label: str
    value: str


class EmbeddingExplanation(CamelModel):
    event_id: str
    version: str
    vector: List[float]
    dimensions: List[EmbeddingDimension]
