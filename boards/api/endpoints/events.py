"""Event listing, management and RSVP endpoints."""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Query, status

from boards.api.deps import get_current_user, get_event_service
from boards.models import User
from boards.recommendation.temporal import WhenFilter
from boards.schemas.event import (
    AttendeeResponse,
    EmbeddingExplanation,
    EventCreate,
    EventResponse,
    EventUpdate,
    RSVPRequest,
    RSVPResponse,
)
from boards.schemas.user import MessageResponse
from boards.services.event_service import EventFilters, EventService

router = APIRouter()


def _parse_near(near: Optional[str]):
    """Parse "lat,lng"; anything unparseable is ignored."""
    if not near:
        return None, None
    parts = [part.strip() for part in near.split(',')]
    if len(parts) != 2:
        return None, None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None, None


def _split_vibes(vibe: Optional[str], vibes: List[str]) -> List[str]:
    tags = []
    for value in ([vibe] if vibe else []) + list(vibes):
        for tag in value.split(','):
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tags


@router.get("", response_model=List[EventResponse])
def list_events(
    near: Optional[str] = Query(None, description="Reference point as 'lat,lng'"),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0),
    radius_km: Optional[float] = Query(None, alias="radiusKm", gt=0),
    vibe: Optional[str] = None,
    vibes: List[str] = Query([]),
    search: Optional[str] = None,
    when: Optional[WhenFilter] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    service: EventService = Depends(get_event_service)
):
    """
    List events ordered by start time.

    With a location (``near`` or ``lat``/``lng``) results are limited to the
    radius, 10 km by default, and sorted closest first.
    """
    near_lat, near_lng = _parse_near(near)
    if near_lat is None and lat is not None and lng is not None:
        near_lat, near_lng = lat, lng

    filters = EventFilters(
        when=when.value if when is not None else None,
        start_date=start_date,
        end_date=end_date,
        vibes=_split_vibes(vibe, vibes),
        search=search,
        lat=near_lat,
        lng=near_lng,
        radius_km=radius_km or radius,
    )
    return service.list_events(filters)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    event: EventCreate,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Create an event hosted by the acting user."""
    return service.create_event(current_user, event.model_dump())


@router.get("/{event_id}", response_model=EventResponse)
def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    return service.get_event(event_id)


@router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    event: EventUpdate,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Update fields present in the body. Only the host may edit."""
    return service.update_event(current_user, event_id, event.changes())


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    service.delete_event(current_user, event_id)
    return MessageResponse(message="Event deleted")


@router.post("/{event_id}/rsvp", response_model=RSVPResponse)
def rsvp(
    event_id: str,
    request: Optional[RSVPRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Create or update the acting user's RSVP."""
    status_value = request.status if request is not None else "going"
    return service.rsvp(current_user, event_id, status_value)


@router.delete("/{event_id}/rsvp", response_model=MessageResponse)
def cancel_rsvp(
    event_id: str,
    current_user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    service.cancel_rsvp(current_user, event_id)
    return MessageResponse(message="RSVP removed")


@router.get("/{event_id}/attendees", response_model=List[AttendeeResponse])
def get_attendees(event_id: str, service: EventService = Depends(get_event_service)):
    return service.attendees(event_id)


@router.get("/{event_id}/embedding", response_model=EmbeddingExplanation)
def get_embedding(event_id: str, service: EventService = Depends(get_event_service)):
    """The event's embedding with a labelled value per dimension."""
    return service.explain_event_embedding(event_id)
