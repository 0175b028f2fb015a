"""Database models."""

from .user import Follow, User
from .event import EventModel, EventEmbedding
from .feedback import Interaction, RSVP, INTERACTION_ACTIONS, RSVP_STATUSES

__all__ = [
    'User',
    'Follow',
    'EventModel',
    'EventEmbedding',
    'Interaction',
    'RSVP',
    'INTERACTION_ACTIONS',
    'RSVP_STATUSES',
]
