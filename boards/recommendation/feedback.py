"""
Feedback processing for recommendation signals.

Each interaction (view, cosign, going, hide) is appended to the interaction log
and nudges the event's popularity. Positive actions also raise the host's trust.
Counters are changed with single SQL UPDATE statements so concurrent feedback on
the same event never loses an increment.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional
import logging
from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boards.core.exceptions import NotFoundError
from boards.models import EventModel, Interaction, User
from boards.monitoring.performance import PerformanceMonitor, performance_monitor

logger = logging.getLogger(__name__)

POPULARITY_IMPACT: Mapping[str, float] = {
    'view': 0.1,
    'cosign': 0.6,
    'going': 1.0,
    'hide': -0.8,
}

TRUST_ACTIONS = ('going', 'cosign')
TRUST_INCREMENT_FACTOR = 0.05
TRUST_SCORE_CEILING = 1.0


class FeedbackProcessor:
    """Apply user feedback to persisted popularity and trust signals"""

    def __init__(self, db: Session, monitor: Optional[PerformanceMonitor] = None):
        self.db = db
        self.monitor = monitor or performance_monitor

    def apply_feedback(
        self,
        user_id: str,
        event_id: str,
        action: str,
        dwell_ms: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Interaction:
        """
        Record an interaction and update the derived counters.

        Args:
            user_id: ID of the acting user
            event_id: ID of the event acted on
            action: One of view, cosign, going, hide
            dwell_ms: Optional time spent viewing, in milliseconds
            now: Interaction timestamp; defaults to the current time

        Returns:
            The persisted Interaction
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        event = self.db.get(EventModel, event_id)
        if event is None:
            raise NotFoundError("Event", event_id)

        now = now or datetime.now(timezone.utc)
        delta = POPULARITY_IMPACT.get(action, 0.0)

        with self.monitor.monitor_operation('feedback_apply'):
            try:
                interaction = Interaction(
                    user_id=user_id,
                    event_id=event_id,
                    action=action,
                    dwell_ms=dwell_ms,
                    created_at=now
                )
                self.db.add(interaction)

                self.db.execute(
                    update(EventModel)
                    .where(EventModel.id == event_id)
                    .values(popularity_score=EventModel.popularity_score + delta)
                    .execution_options(synchronize_session=False)
                )

                if action in TRUST_ACTIONS:
                    increment = max(delta, 0.0) * TRUST_INCREMENT_FACTOR
                    raised = User.trust_score + increment
                    self.db.execute(
                        update(User)
                        .where(User.id == event.host_id)
                        .values(trust_score=case(
                            (User.trust_score >= TRUST_SCORE_CEILING, User.trust_score),
                            (raised > TRUST_SCORE_CEILING, TRUST_SCORE_CEILING),
                            else_=raised
                        ))
                        .execution_options(synchronize_session=False)
                    )

                # The next feed read recomputes the taste vector from the log
                user.taste_vector = []

                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    f"Error applying feedback: {str(e)}",
                    exc_info=e,
                    extra={
                        'user_id': user_id,
                        'event_id': event_id,
                        'action': action
                    }
                )
                raise

        self.db.refresh(interaction)

        logger.info(
            "Recorded feedback",
            extra={
                'user_id': user_id,
                'event_id': event_id,
                'action': action,
                'popularity_delta': delta
            }
        )
        return interaction
