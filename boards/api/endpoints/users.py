from typing import List
from fastapi import APIRouter, Depends

from boards.api.deps import get_event_service
from boards.schemas.event import EventResponse
from boards.schemas.user import UserProfile
from boards.services.event_service import EventService

router = APIRouter()


@router.get("/{user_id}", response_model=UserProfile)
def get_user(user_id: str, service: EventService = Depends(get_event_service)):
    return service.get_user(user_id)


@router.get("/{user_id}/events", response_model=List[EventResponse])
def get_user_events(user_id: str, service: EventService = Depends(get_event_service)):
    """Events hosted by the user, newest start first."""
    return service.list_user_events(user_id)
