"""Service for generating the personalized event feed."""
from typing import List, Optional
from datetime import datetime, timezone, tzinfo
import logging
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from boards.core.exceptions import NotFoundError
from boards.models import EventModel, Interaction, User
from boards.monitoring.performance import PerformanceMonitor, performance_monitor
from boards.recommendation.engine import (
    Candidate,
    ScoredEvent,
    ScoringContext,
    ScoringEngine,
    ScoringWeights,
    UserSignals,
)
from boards.recommendation.features.taste import TasteVectorAggregator
from boards.recommendation.models.embeddings import is_valid_vector
from boards.recommendation.temporal import time_window
from boards.schemas.event import EventResponse
from boards.schemas.recommendation import (
    RecommendationRequest,
    RecommendationResponse,
    ScoredEventResponse,
)
from boards.services.event_service import EventService, to_utc

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(
        self,
        db: Session,
        weights: Optional[ScoringWeights] = None,
        tz: Optional[tzinfo] = None,
        max_results_cap: Optional[int] = None,
        monitor: Optional[PerformanceMonitor] = None
    ):
        """Initialize recommendation service with required components."""
        self.db = db
        self.tz = tz or timezone.utc
        if max_results_cap is None:
            self.engine = ScoringEngine(weights)
        else:
            self.engine = ScoringEngine(weights, max_results_cap=max_results_cap)
        self.aggregator = TasteVectorAggregator()
        self.event_service = EventService(db, tz=self.tz)
        self.monitor = monitor or performance_monitor

    def get_feed(self, request: RecommendationRequest, now: Optional[datetime] = None) -> RecommendationResponse:
        """
        Build the ranked feed for one user.

        Args:
            request: Validated feed request
            now: Evaluation time; defaults to the current time in the configured zone

        Returns:
            The scored events, best first
        """
        now = now or datetime.now(self.tz)

        user = self.db.get(User, request.user_id)
        if user is None:
            raise NotFoundError("User", request.user_id)

        when = request.when.value if request.when is not None else None
        # Caching a fresh taste vector commits, so resolve it before loading candidates
        signals = UserSignals(
            vibe_prefs=tuple(user.vibe_prefs or ()),
            taste_vector=tuple(self.get_taste_vector(user, now)),
        )
        candidates = self._load_candidates(when, now)
        context = ScoringContext(
            now=now,
            lat=request.location.lat,
            lng=request.location.lng,
            radius_km=request.radius_km,
            when=when,
            vibes=tuple(request.vibes),
            max_results=request.max,
        )

        with self.monitor.monitor_operation('recommendation_scoring'):
            ranked = self.engine.rank(candidates, signals, context)

        logger.info(
            "Generated feed",
            extra={
                'user_id': user.id,
                'candidates': len(candidates),
                'returned': len(ranked),
                'when': when
            }
        )
        return RecommendationResponse(
            generated_at=datetime.now(timezone.utc),
            count=len(ranked),
            events=[self._to_response(item) for item in ranked],
        )

    def get_taste_vector(self, user: User, now: datetime) -> List[float]:
        """
        Stored taste vector if present, otherwise aggregated from the
        interaction log and cached on the user. Empty when there is no signal.
        """
        if is_valid_vector(user.taste_vector):
            return list(user.taste_vector)

        interactions = self.db.scalars(
            select(Interaction)
            .options(selectinload(Interaction.event).selectinload(EventModel.embedding))
            .where(Interaction.user_id == user.id)
        ).all()
        vector = self.aggregator.aggregate_interactions(interactions, now)
        if not vector:
            return []

        user.taste_vector = vector
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error caching taste vector: {str(e)}",
                exc_info=e,
                extra={'user_id': user.id}
            )
            raise
        return vector

    def _load_candidates(self, when: Optional[str], now: datetime) -> List[Candidate]:
        query = select(EventModel).options(
            selectinload(EventModel.host),
            selectinload(EventModel.embedding)
        )
        window = time_window(when, now)
        if window is not None:
            start, end = window
            query = query.where(EventModel.start_time >= to_utc(start))
            if end is not None:
                query = query.where(EventModel.start_time <= to_utc(end))
        else:
            query = query.where(EventModel.start_time >= to_utc(now))

        events = list(self.db.scalars(query.order_by(EventModel.start_time)).all())
        counts = self.event_service.rsvp_counts(event.id for event in events)
        for event in events:
            event.rsvp_count = counts.get(event.id, 0)

        return [
            Candidate(
                event=event,
                embedding=event.embedding.vector if event.embedding is not None else None,
                rsvp_count=event.rsvp_count,
                host_trust=event.host.trust_score if event.host is not None else None,
            )
            for event in events
        ]

    def _to_response(self, item: ScoredEvent) -> ScoredEventResponse:
        event = item.event
        event.distance_km = item.distance_km
        base = EventResponse.model_validate(event).model_dump()
        return ScoredEventResponse(
            **base,
            score=item.score,
            breakdown=item.breakdown,
            reasons=item.reasons,
        )
