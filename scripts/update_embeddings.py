"""
Regenerate stored event embeddings and refresh user taste vectors.

Run after changing the embedding lookup tables (and EMBEDDING_VERSION) so that
stored vectors match the current model.
"""
import argparse
import logging
from datetime import datetime, timezone
from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from boards.core.config import settings
from boards.database import SessionLocal
from boards.models import EventModel, Interaction, User
from boards.monitoring.performance import performance_monitor
from boards.recommendation.features.taste import TasteVectorAggregator
from boards.recommendation.models.embeddings import EMBEDDING_VERSION
from boards.services.event_service import EventService
from boards.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def update_event_embeddings(db, only_stale: bool = False) -> int:
    """Re-embed events; with ``only_stale`` skip those already on the current version."""
    service = EventService(db, tz=settings.local_timezone())
    events = db.scalars(select(EventModel).options(selectinload(EventModel.embedding))).all()

    updated = 0
    for event in events:
        if only_stale and event.embedding is not None and event.embedding.version == EMBEDDING_VERSION:
            continue
        service.refresh_embedding(event)
        updated += 1

    db.commit()
    logger.info(f"Updated {updated} of {len(events)} event embeddings")
    return updated


def update_taste_vectors(db, now: datetime) -> int:
    """Recompute every user's taste vector from their interaction log."""
    aggregator = TasteVectorAggregator()
    users = db.scalars(select(User)).all()

    for user in users:
        interactions = db.scalars(
            select(Interaction)
            .options(selectinload(Interaction.event).selectinload(EventModel.embedding))
            .where(Interaction.user_id == user.id)
        ).all()
        user.taste_vector = aggregator.aggregate_interactions(interactions, now)

    db.commit()
    logger.info(f"Refreshed taste vectors for {len(users)} users")
    return len(users)


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument('--only-stale', action='store_true', help="Skip embeddings already on the current version")
    parser.add_argument('--skip-users', action='store_true', help="Leave user taste vectors untouched")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        with performance_monitor.measure_time('update_event_embeddings'):
            update_event_embeddings(db, only_stale=args.only_stale)
        if not args.skip_users:
            with performance_monitor.measure_time('update_taste_vectors'):
                update_taste_vectors(db, datetime.now(timezone.utc))
    except Exception:
        db.rollback()
        logger.exception("Embedding update failed")
        raise
    finally:
        db.close()


if __name__ == '__main__':
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    main()
