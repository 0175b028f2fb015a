from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
import logging

from boards.core.exceptions import ForbiddenError, NotFoundError, RequestValidationFailed
from boards.models import RSVP, EventEmbedding, EventModel, Follow, User
from boards.recommendation.models.embeddings import EventEmbedder, explain_embedding
from boards.recommendation.temporal import as_aware, time_window
from boards.services.location_services import DEFAULT_LISTING_RADIUS_KM, LocationService

logger = logging.getLogger(__name__)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are UTC; naive input is taken to already be UTC."""
    if value is None:
        return None
    return as_aware(value).astimezone(timezone.utc)


@dataclass
class EventFilters:
    """Query options for the public events listing."""
    when: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    vibes: Sequence[str] = field(default_factory=list)
    search: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None


class EventService:
    """Event CRUD, listings, RSVPs and profile lookups."""

    def __init__(self, db: Session, tz: Optional[tzinfo] = None):
        self.db = db
        self.tz = tz or timezone.utc
        self.embedder = EventEmbedder(tz=self.tz)
        self.location_service = LocationService()

    # Embeddings

    def _store_embedding(self, event: EventModel) -> None:
        vector = self.embedder.embed(event)
        if event.embedding is None:
            event.embedding = EventEmbedding(vector=vector, version=self.embedder.version)
        else:
            event.embedding.vector = vector
            event.embedding.version = self.embedder.version
            event.embedding.updated_at = datetime.now(timezone.utc)

    def refresh_embedding(self, event: EventModel) -> List[float]:
        """Regenerate and stage the embedding for one event."""
        self._store_embedding(event)
        return event.embedding.vector

    def explain_event_embedding(self, event_id: str) -> Dict[str, Any]:
        event = self.get_event(event_id)
        if event.embedding is None:
            raise NotFoundError("Embedding", event_id)
        return {
            'event_id': event.id,
            'version': event.embedding.version,
            'vector': event.embedding.vector,
            'dimensions': explain_embedding(event.embedding.vector) or [],
        }

    # Reads

    def rsvp_counts(self, event_ids: Iterable[str]) -> Dict[str, int]:
        """RSVP totals per event id, in one grouped query."""
        event_ids = list(event_ids)
        if not event_ids:
            return {}
        rows = self.db.execute(
            select(RSVP.event_id, func.count(RSVP.id))
            .where(RSVP.event_id.in_(event_ids))
            .group_by(RSVP.event_id)
        ).all()
        return {event_id: count for event_id, count in rows}

    def _annotate(self, events: List[EventModel]) -> List[EventModel]:
        counts = self.rsvp_counts(event.id for event in events)
        for event in events:
            event.rsvp_count = counts.get(event.id, 0)
        return events

    def get_event(self, event_id: str) -> EventModel:
        event = self.db.scalars(
            select(EventModel)
            .options(selectinload(EventModel.host), selectinload(EventModel.embedding))
            .where(EventModel.id == event_id)
        ).first()
        if event is None:
            raise NotFoundError("Event", event_id)
        return self._annotate([event])[0]

    def list_events(self, filters: EventFilters, now: Optional[datetime] = None) -> List[EventModel]:
        """
        List events matching the filters, ordered by start time.

        Explicit start/end dates take precedence over ``when``. With a
        location, events are annotated with ``distance_km``, limited to the
        radius (10 km unless given) and sorted closest first; events without
        coordinates are left out.
        """
        now = now or datetime.now(self.tz)
        query = select(EventModel).options(selectinload(EventModel.host))

        if filters.start_date or filters.end_date:
            if filters.start_date:
                query = query.where(EventModel.start_time >= to_utc(filters.start_date))
            if filters.end_date:
                query = query.where(EventModel.start_time <= to_utc(filters.end_date))
        elif filters.when:
            window = time_window(filters.when, now)
            if window is not None:
                start, end = window
                query = query.where(EventModel.start_time >= to_utc(start))
                if end is not None:
                    query = query.where(EventModel.start_time <= to_utc(end))

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.where(or_(
                EventModel.title.ilike(pattern),
                EventModel.description.ilike(pattern),
                EventModel.neighborhood.ilike(pattern),
            ))

        events = list(self.db.scalars(query.order_by(EventModel.start_time)).all())

        # JSON vibe columns are matched here so the query stays portable
        if filters.vibes:
            wanted = set(filters.vibes)
            events = [event for event in events if wanted.intersection(event.vibe or [])]

        if filters.has_location:
            radius = filters.radius_km or DEFAULT_LISTING_RADIUS_KM
            events = self.location_service.nearby(events, filters.lat, filters.lng, radius)

        logger.debug("Listed events", extra={'count': len(events), 'when': filters.when})
        return self._annotate(events)

    def get_user(self, user_id: str) -> Dict[str, Any]:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        profile = user.to_dict()
        profile['created_at'] = user.created_at
        profile['event_count'] = self.db.scalar(
            select(func.count(EventModel.id)).where(EventModel.host_id == user_id)
        ) or 0
        profile['follower_count'] = self.db.scalar(
            select(func.count(Follow.id)).where(Follow.following_id == user_id)
        ) or 0
        profile['following_count'] = self.db.scalar(
            select(func.count(Follow.id)).where(Follow.follower_id == user_id)
        ) or 0
        return profile

    def list_user_events(self, user_id: str) -> List[EventModel]:
        if self.db.get(User, user_id) is None:
            raise NotFoundError("User", user_id)
        events = self.db.scalars(
            select(EventModel)
            .options(selectinload(EventModel.host))
            .where(EventModel.host_id == user_id)
            .order_by(EventModel.start_time.desc())
        ).all()
        return self._annotate(list(events))

    def attendees(self, event_id: str) -> List[RSVP]:
        if self.db.get(EventModel, event_id) is None:
            raise NotFoundError("Event", event_id)
        return list(self.db.scalars(
            select(RSVP)
            .options(selectinload(RSVP.user))
            .where(RSVP.event_id == event_id)
            .order_by(RSVP.created_at)
        ).all())

    # Writes

    def _commit(self, action: str, **context) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error during {action}: {str(e)}",
                exc_info=e,
                extra=context
            )
            raise

    def _owned_event(self, actor: User, event_id: str) -> EventModel:
        event = self.db.get(EventModel, event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        if event.host_id != actor.id:
            raise ForbiddenError("Not authorized", details={'event_id': event_id})
        return event

    def create_event(self, host: User, data: Dict[str, Any]) -> EventModel:
        """Persist a new event hosted by ``host`` together with its embedding."""
        values = dict(data)
        values['start_time'] = to_utc(values['start_time'])
        values['end_time'] = to_utc(values.get('end_time'))

        event = EventModel(host_id=host.id, **values)
        self._store_embedding(event)
        self.db.add(event)
        self._commit('create_event', host_id=host.id)

        logger.info("Created event", extra={'event_id': event.id, 'host_id': host.id})
        return self.get_event(event.id)

    def update_event(self, actor: User, event_id: str, changes: Dict[str, Any]) -> EventModel:
        """
        Apply a partial update. Only the host may edit.

        The embedding is regenerated when any field it is derived from changes.
        """
        event = self._owned_event(actor, event_id)

        for key in ('start_time', 'end_time'):
            if key in changes:
                changes[key] = to_utc(changes[key])

        start = changes.get('start_time', event.start_time)
        end = changes.get('end_time', event.end_time)
        if start is not None and end is not None and as_aware(end) < as_aware(start):
            raise RequestValidationFailed("endTime", "End time must be after start time")

        changed = set()
        for key, value in changes.items():
            if getattr(event, key) != value:
                setattr(event, key, value)
                changed.add(key)

        if changed.intersection(EventModel.EMBEDDED_FIELDS):
            self._store_embedding(event)

        self._commit('update_event', event_id=event_id)
        logger.info("Updated event", extra={'event_id': event_id, 'fields': sorted(changed)})
        return self.get_event(event_id)

    def delete_event(self, actor: User, event_id: str) -> None:
        event = self._owned_event(actor, event_id)
        self.db.delete(event)
        self._commit('delete_event', event_id=event_id)
        logger.info("Deleted event", extra={'event_id': event_id})

    def rsvp(self, user: User, event_id: str, status: str = "going") -> RSVP:
        """Create or update the user's RSVP for an event."""
        if self.db.get(EventModel, event_id) is None:
            raise NotFoundError("Event", event_id)

        rsvp = self.db.scalars(
            select(RSVP).where(RSVP.user_id == user.id, RSVP.event_id == event_id)
        ).first()
        if rsvp is None:
            rsvp = RSVP(user_id=user.id, event_id=event_id, status=status)
            self.db.add(rsvp)
        else:
            rsvp.status = status

        self._commit('rsvp', user_id=user.id, event_id=event_id)
        self.db.refresh(rsvp)
        return rsvp

    def cancel_rsvp(self, user: User, event_id: str) -> None:
        rsvp = self.db.scalars(
            select(RSVP).where(RSVP.user_id == user.id, RSVP.event_id == event_id)
        ).first()
        if rsvp is None:
            raise NotFoundError("RSVP", event_id)
        self.db.delete(rsvp)
        self._commit('cancel_rsvp', user_id=user.id, event_id=event_id)
