"""
Recommendation feed and feedback schemas.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from boards.core.config import settings
from boards.models.feedback import INTERACTION_ACTIONS
from boards.recommendation.temporal import WhenFilter
from boards.schemas.common import CamelModel, StrictCamelModel, normalize_vibes, utc_aware
from boards.schemas.event import EventResponse, latitude, longitude

MAX_RADIUS_KM = 200.0
DEFAULT_RADIUS_KM = settings.DEFAULT_RADIUS_KM
DEFAULT_MAX_RESULTS = settings.DEFAULT_MAX_RESULTS


def user_id(value: Any) -> str:
    if value is None or value == "":
        raise ValueError("userId is required")
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValueError("userId must be a valid UUID") from None


class Location(StrictCamelModel):
    lat: float
    lng: float

    @field_validator('lat', mode='before')
    @classmethod
    def validate_lat(cls, v):
        v = latitude(v)
        if v is None:
            raise ValueError("Latitude is required")
        return v

    @field_validator('lng', mode='before')
    @classmethod
    def validate_lng(cls, v):
        v = longitude(v)
        if v is None:
            raise ValueError("Longitude is required")
        return v


class RecommendationRequest(StrictCamelModel):
    """Feed request. Values of `max` above the server cap are accepted and capped later."""
    user_id: str
    location: Location
    radius_km: float = DEFAULT_RADIUS_KM
    when: Optional[WhenFilter] = None
    vibes: List[str] = Field(default_factory=list)
    max: int = DEFAULT_MAX_RESULTS

    @field_validator('user_id', mode='before')
    @classmethod
    def validate_user_id(cls, v):
        return user_id(v)

    @field_validator('radius_km', mode='before')
    @classmethod
    def validate_radius(cls, v):
        if v is None:
            return DEFAULT_RADIUS_KM
        if isinstance(v, bool):
            raise ValueError("radiusKm must be a number")
        try:
            v = float(v)
        except (TypeError, ValueError):
            raise ValueError("radiusKm must be a number") from None
        if v <= 0 or v > MAX_RADIUS_KM:
            raise ValueError(f"radiusKm must be greater than 0 and at most {MAX_RADIUS_KM:g}")
        return v

    @field_validator('when', mode='before')
    @classmethod
    def validate_when(cls, v):
        if v is None or v == "":
            return None
        try:
            return WhenFilter(str(v).strip().lower())
        except ValueError:
            options = ", ".join(item.value for item in WhenFilter)
            raise ValueError(f"when must be one of: {options}") from None

    @field_validator('vibes', mode='before')
    @classmethod
    def validate_vibes(cls, v):
        return normalize_vibes(v)

    @field_validator('max', mode='before')
    @classmethod
    def validate_max(cls, v):
        if v is None:
            return DEFAULT_MAX_RESULTS
        if isinstance(v, bool) or isinstance(v, float) and not v.is_integer():
            raise ValueError("max must be a positive integer")
        try:
            v = int(v)
        except (TypeError, ValueError):
            raise ValueError("max must be a positive integer") from None
        if v <= 0:
            raise ValueError("max must be a positive integer")
        return v


class ScoredEventResponse(EventResponse):
    score: float
    breakdown: Dict[str, float]
    reasons: List[str]


class RecommendationResponse(CamelModel):
    generated_at: datetime
    count: int
    events: List[ScoredEventResponse]


class FeedbackRequest(StrictCamelModel):
    user_id: str
    event_id: str
    action: str
    dwell_ms: Optional[int] = None

    @field_validator('user_id', mode='before')
    @classmethod
    def validate_user_id(cls, v):
        return user_id(v)

    @field_validator('event_id', mode='before')
    @classmethod
    def validate_event_id(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("eventId is required")
        return str(v).strip()

    @field_validator('action', mode='before')
    @classmethod
    def validate_action(cls, v):
        v = "" if v is None else str(v).strip().lower()
        if v not in INTERACTION_ACTIONS:
            raise ValueError(f"action must be one of: {', '.join(INTERACTION_ACTIONS)}")
        return v

    @field_validator('dwell_ms', mode='before')
    @classmethod
    def validate_dwell(cls, v):
        if v is None:
            return None
        if isinstance(v, bool):
            raise ValueError("dwellMs must be a non-negative integer")
        try:
            v = int(v)
        except (TypeError, ValueError):
            raise ValueError("dwellMs must be a non-negative integer") from None
        if v < 0:
            raise ValueError("dwellMs must be a non-negative integer")
        return v


class InteractionResponse(CamelModel):
    id: str
    user_id: str
    event_id: str
    action: str
    dwell_ms: Optional[int] = None
    created_at: Optional[datetime] = None

    @field_validator('created_at')
    @classmethod
    def ensure_timezone(cls, v):
        return utc_aware(v)


class FeedbackResponse(CamelModel):
    success: bool = True
    interaction: InteractionResponse
