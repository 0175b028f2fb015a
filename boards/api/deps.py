"""Shared FastAPI dependencies."""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
import logging

from boards.core.config import settings
from boards.core.exceptions import AuthenticationError
from boards.database import get_db
from boards.models import User
from boards.services.event_service import EventService
from boards.services.recommendation import RecommendationService

logger = logging.getLogger(__name__)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the acting user from the X-User-Id header.

    Raises:
        AuthenticationError: If the header is missing or names no user
    """
    if not x_user_id:
        raise AuthenticationError("Authentication required")

    user = db.get(User, x_user_id.strip())
    if user is None:
        logger.debug("Unknown acting user", extra={'user_id': x_user_id})
        raise AuthenticationError("Invalid user")
    return user


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    return EventService(db, tz=settings.local_timezone())


def get_recommendation_service(db: Session = Depends(get_db)) -> RecommendationService:
    return RecommendationService(
        db,
        weights=settings.scoring_weights(),
        tz=settings.local_timezone(),
        max_results_cap=settings.MAX_RESULTS_CAP,
    )
