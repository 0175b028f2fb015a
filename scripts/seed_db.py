"""Script to create the tables and seed a demo host with a handful of events."""
import logging
from datetime import datetime, timedelta
from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select

from boards.core.config import settings
from boards.database import Base, SessionLocal, engine
from boards.models import User
from boards.services.event_service import EventService
from boards.utils.logging import setup_logging

logger = logging.getLogger(__name__)

DEMO_HOST = {
    'email': 'host@boards.local',
    'username': 'boards_host',
    'display_name': 'Boards Host',
    'home_neighborhood': 'Mission',
    'vibe_prefs': ['Creative', 'Community'],
    'trust_score': 0.6,
}


def sample_events(now: datetime):
    """Events spread over the next week around San Francisco's Mission district."""
    tonight = now.replace(hour=21, minute=0, second=0, microsecond=0)
    return [
        {
            'title': "Warehouse Rave",
            'description': "Wild night with a DJ lineup until late",
            'start_time': tonight,
            'address': "500 Florida St, San Francisco",
            'neighborhood': 'Mission',
            'latitude': 37.7648,
            'longitude': -122.4111,
            'vibe': ['Wild', 'Loud'],
            'event_type': 'party',
            'capacity': 300,
            'age_restriction': '21+',
        },
        {
            'title': "Sunrise Yoga",
            'description': "Calm meditation and breathwork in the park",
            'start_time': (now + timedelta(days=1)).replace(hour=7, minute=0, second=0, microsecond=0),
            'address': "Dolores Park, San Francisco",
            'neighborhood': 'Mission',
            'latitude': 37.7596,
            'longitude': -122.4269,
            'vibe': ['Chill', 'Zen'],
            'event_type': 'wellness',
            'capacity': 20,
            'age_restriction': 'All ages',
        },
        {
            'title': "Open Studio Night",
            'description': "Local painters open their gallery to the community",
            'start_time': (now + timedelta(days=3)).replace(hour=18, minute=30, second=0, microsecond=0),
            'address': "2 Clarion Alley, San Francisco",
            'neighborhood': 'Mission',
            'latitude': 37.7630,
            'longitude': -122.4214,
            'vibe': ['Creative', 'Artsy', 'Community'],
            'event_type': 'art',
            'capacity': 80,
        },
        {
            'title': "Founders Breakfast",
            'description': "Startup networking over coffee",
            'start_time': (now + timedelta(days=5)).replace(hour=8, minute=0, second=0, microsecond=0),
            'address': "1 Market St, San Francisco",
            'neighborhood': 'Financial District',
            'latitude': 37.7941,
            'longitude': -122.3950,
            'vibe': ['Professional'],
            'event_type': 'networking',
            'capacity': 40,
        },
    ]


def seed_db():
    """Seed the demo data unless the demo host already exists."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.scalars(select(User).where(User.email == DEMO_HOST['email'])).first():
            logger.info("Demo data already present, nothing to do")
            return

        host = User(**DEMO_HOST)
        db.add(host)
        db.commit()

        service = EventService(db, tz=settings.local_timezone())
        now = datetime.now(settings.local_timezone())
        events = sample_events(now)
        for data in events:
            service.create_event(host, data)

        logger.info(f"Seeded demo host {host.id} with {len(events)} events")
    finally:
        db.close()


if __name__ == '__main__':
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    seed_db()
