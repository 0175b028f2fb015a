"""Recommendation feed and feedback endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boards.api.deps import get_recommendation_service
from boards.database import get_db
from boards.recommendation.feedback import FeedbackProcessor
from boards.schemas.recommendation import (
    FeedbackRequest,
    FeedbackResponse,
    InteractionResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from boards.services.recommendation import RecommendationService

router = APIRouter()


@router.post("/feed", response_model=RecommendationResponse)
def get_feed(
    request: RecommendationRequest,
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Ranked events for a user around a location.

    Each event carries its distance, total score, per-signal breakdown and
    the reasons it was picked.
    """
    return service.get_feed(request)


@router.post(
    "/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED
)
def record_feedback(request: FeedbackRequest, db: Session = Depends(get_db)):
    """Record a view, cosign, going or hide on an event."""
    interaction = FeedbackProcessor(db).apply_feedback(
        user_id=request.user_id,
        event_id=request.event_id,
        action=request.action,
        dwell_ms=request.dwell_ms,
    )
    return FeedbackResponse(
        success=True,
        interaction=InteractionResponse.model_validate(interaction)
    )
