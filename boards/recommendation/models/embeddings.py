"""Deterministic event embeddings.

Every event maps to an 8-dimensional feature vector built from fixed lookup
tables. The dimensions, in order:

    0  energy (chill -> wild)
    1  creativity (practical -> artistic)
    2  social scale (intimate -> community)
    3  food / culinary focus
    4  physical activity
    5  nightlife intensity
    6  professional / networking
    7  wellness / mindfulness

The tables below are the whole model. Bump EMBEDDING_VERSION when any weight
changes so stored embeddings can be regenerated (scripts/update_embeddings.py).
"""
import re
import logging
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence, Tuple

import numpy as np

from boards.recommendation.temporal import as_aware

logger = logging.getLogger(__name__)

EMBEDDING_VERSION = "v1"
EMBEDDING_DIM = 8

DIMENSION_LABELS = (
    'Energy (chill → wild)',
    'Creativity (practical → artistic)',
    'Social scale (intimate → community)',
    'Food/Culinary focus',
    'Physical activity',
    'Nightlife intensity',
    'Professional/Networking',
    'Wellness/Mindfulness',
)

VIBE_WEIGHTS: Mapping[str, Mapping[int, float]] = {
    # Energy
    'Wild': {0: 1.0, 5: 0.7},
    'Loud': {0: 0.9, 5: 0.6},
    'Chill': {0: -0.8, 7: 0.4},
    'Intimate': {0: -0.6, 2: -0.7},
    # Creativity
    'Creative': {1: 0.9},
    'Artsy': {1: 0.8, 7: 0.3},
    # Social scale
    'Community': {2: 0.8},
    # Food
    'Foodie': {3: 1.0},
    # Professional
    'Professional': {6: 0.9},
    # Wellness
    'Zen': {7: 0.9, 0: -0.5},
}

EVENT_TYPE_WEIGHTS: Mapping[str, Mapping[int, float]] = {
    # High energy
    'party': {0: 0.9, 5: 0.9, 2: 0.5},
    'dance': {0: 0.8, 5: 0.7, 4: 0.6},
    'concert': {0: 0.7, 1: 0.6, 5: 0.6, 2: 0.4},
    'festival': {0: 0.6, 2: 0.9, 1: 0.5},
    # Creative / arts
    'art': {1: 0.9, 0: -0.3},
    'theatre': {1: 0.8, 0: -0.2},
    'music': {1: 0.7, 0: 0.3},
    'workshop': {1: 0.6, 6: 0.4},
    # Food
    'food': {3: 0.9, 2: 0.3},
    'market': {3: 0.5, 2: 0.6, 1: 0.4},
    # Active
    'sports': {4: 0.9, 0: 0.4},
    # Professional
    'networking': {6: 0.9, 0: -0.4},
    'talk': {6: 0.7, 1: 0.3},
    'meetup': {6: 0.5, 2: 0.5},
    # Wellness
    'wellness': {7: 0.9, 0: -0.6},
    # Community
    'community': {2: 0.8, 0: 0.1},
    'other': {},
}

# Event type is a stronger signal than a single vibe tag
EVENT_TYPE_MULTIPLIER = 1.2


def _patterns(*entries: Tuple[str, Mapping[int, float]]) -> Tuple[Tuple[Pattern, Mapping[int, float]], ...]:
    return tuple((re.compile(rf"\b({words})\b", re.IGNORECASE), weights) for words, weights in entries)


KEYWORD_PATTERNS: Mapping[str, Tuple[Tuple[Pattern, Mapping[int, float]], ...]] = {
    'energy': _patterns(
        ('rave|rager|wild|crazy|insane|lit', {0: 0.3, 5: 0.3}),
        ('chill|relax|calm|peaceful|quiet', {0: -0.3, 7: 0.2}),
        ('intense|hardcore|aggressive', {0: 0.4, 4: 0.2}),
    ),
    'creative': _patterns(
        ('art|artistic|creative|gallery|exhibition', {1: 0.3}),
        ('paint|drawing|sculpture|installation', {1: 0.4}),
        ('music|musical|band|dj|live', {1: 0.2, 0: 0.2}),
    ),
    'social': _patterns(
        ('intimate|small|exclusive|limited', {2: -0.3}),
        ('community|everyone|open|public', {2: 0.3}),
        ('massive|huge|big|large', {2: 0.4}),
    ),
    'food': _patterns(
        ('food|eat|dining|restaurant|cuisine', {3: 0.3}),
        ('wine|beer|cocktail|drinks', {3: 0.2, 5: 0.2}),
        ('chef|cooking|tasting|culinary', {3: 0.4}),
    ),
    'activity': _patterns(
        ('sport|athletic|fitness|exercise|workout', {4: 0.4}),
        ('run|bike|hike|climb|skate', {4: 0.3}),
    ),
    'nightlife': _patterns(
        ('night|midnight|late|after.?dark', {5: 0.3}),
        ('club|clubbing|dancing|nightclub', {5: 0.4, 0: 0.3}),
    ),
    'professional': _patterns(
        ('network|business|career|professional', {6: 0.3}),
        ('startup|entrepreneur|tech|innovation', {6: 0.4}),
        ('conference|seminar|presentation|talk', {6: 0.3}),
    ),
    'wellness': _patterns(
        ('wellness|meditation|yoga|mindful', {7: 0.4}),
        ('healing|therapy|spiritual|zen', {7: 0.3}),
        ('sound.?bath|breathwork|holistic', {7: 0.5}),
    ),
}

# Time-of-day signals
NIGHTLIFE_BOOST = 0.4
MORNING_WELLNESS_BOOST = 0.3

# Capacity signals
INTIMATE_CAPACITY = 30
LARGE_CAPACITY = 200
INTIMATE_PENALTY = 0.3
LARGE_BOOST = 0.4

# Age restriction signals
ADULT_AGE_RESTRICTIONS = ('19+', '21+')
ADULT_NIGHTLIFE_BOOST = 0.3
ADULT_ENERGY_BOOST = 0.2
ALL_AGES_COMMUNITY_BOOST = 0.2


def _get(event: Any, name: str, default: Any = None) -> Any:
    if isinstance(event, Mapping):
        return event.get(name, default)
    return getattr(event, name, default)


def _add_weights(vector: np.ndarray, weights: Mapping[int, float], scale: float = 1.0) -> None:
    for dim, weight in weights.items():
        vector[dim] += weight * scale


def normalize_vector(vector: Sequence[float]) -> List[float]:
    """Scale to unit L2 norm. A zero vector is returned unchanged."""
    values = np.asarray(vector, dtype=float)
    magnitude = float(np.sqrt(np.sum(values * values)))
    if magnitude == 0:
        return values.tolist()
    return (values / magnitude).tolist()


def is_valid_vector(vector: Any, dim: int = EMBEDDING_DIM) -> bool:
    """True for a list/tuple/array of exactly ``dim`` numbers."""
    if vector is None or isinstance(vector, (str, bytes)):
        return False
    try:
        return len(vector) == dim
    except TypeError:
        return False


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity in [-1, 1].

    Empty, missing, differently sized or zero-magnitude inputs give 0.0.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = float(np.sqrt(np.sum(va * va)))
    norm_b = float(np.sqrt(np.sum(vb * vb)))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(va, vb)) / (norm_a * norm_b)
    # Guard against rounding just past the bounds
    return max(-1.0, min(1.0, similarity))


def explain_embedding(vector: Any) -> Optional[List[Dict[str, Any]]]:
    """Label each dimension of an embedding for debugging."""
    if not is_valid_vector(vector):
        return None

    return [
        {
            'dimension': index,
            'label': DIMENSION_LABELS[index],
            'value': f"{float(value):.3f}",
        }
        for index, value in enumerate(vector)
    ]


class EventEmbedder:
    """Map event attributes to the 8-dimensional vibe space.

    ``embed`` is a pure function of the event's attributes: it reads title,
    description, vibe, event_type, start_time, capacity and age_restriction
    from a model instance or a dictionary with the same keys.
    """

    version = EMBEDDING_VERSION

    def __init__(self, tz: Optional[tzinfo] = None):
        """
        Args:
            tz: Zone used to read the start hour. Start times are converted
                into it, naive ones being taken as UTC. Without a zone the
                hour is read as stored.
        """
        self.tz = tz

    def embed(self, event: Any) -> List[float]:
        vector = np.zeros(EMBEDDING_DIM, dtype=float)

        for tag in _get(event, 'vibe') or []:
            weights = VIBE_WEIGHTS.get(tag)
            if weights:
                _add_weights(vector, weights)

        event_type = _get(event, 'event_type')
        type_weights = EVENT_TYPE_WEIGHTS.get(event_type, EVENT_TYPE_WEIGHTS['other'])
        _add_weights(vector, type_weights, EVENT_TYPE_MULTIPLIER)

        text = f"{_get(event, 'title') or ''} {_get(event, 'description') or ''}".lower()
        for patterns in KEYWORD_PATTERNS.values():
            for pattern, weights in patterns:
                if pattern.search(text):
                    _add_weights(vector, weights)

        hour = self._start_hour(_get(event, 'start_time'))
        if hour is not None:
            # Evening and night, 6pm through 2am
            if hour >= 18 or hour <= 2:
                vector[5] += NIGHTLIFE_BOOST
            # Early morning, 6am through 9am
            if 6 <= hour <= 9:
                vector[7] += MORNING_WELLNESS_BOOST

        capacity = _get(event, 'capacity')
        if capacity:
            if capacity <= INTIMATE_CAPACITY:
                vector[2] -= INTIMATE_PENALTY
            elif capacity >= LARGE_CAPACITY:
                vector[2] += LARGE_BOOST

        age_restriction = _get(event, 'age_restriction')
        if age_restriction in ADULT_AGE_RESTRICTIONS:
            vector[5] += ADULT_NIGHTLIFE_BOOST
            vector[0] += ADULT_ENERGY_BOOST
        elif age_restriction == 'All ages':
            vector[2] += ALL_AGES_COMMUNITY_BOOST

        return normalize_vector(vector)

    def _start_hour(self, start_time: Optional[datetime]) -> Optional[int]:
        if start_time is None:
            return None
        if self.tz is not None:
            start_time = as_aware(start_time).astimezone(self.tz)
        return start_time.hour


_default_embedder = EventEmbedder()


def generate_event_embedding(event: Any) -> List[float]:
    """Embed an event reading its start hour in the start time's own zone."""
    return _default_embedder.embed(event)
