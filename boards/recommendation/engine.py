"""Core recommendation scoring engine.

Blends six signals into one score per candidate event:

    vibe        overlap between event tags and the user's/request's vibes
    distance    linear falloff to zero at the search radius
    time        urgency bucket for the requested `when` window
    popularity  feedback-driven popularity plus RSVP count
    trust       host trust, falling back to the event's own trust
    embed       cosine similarity of taste vector and event embedding

The engine is pure: candidates, user signals and the evaluation time are
passed in, and nothing is read from the database or the clock.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from boards.recommendation.models.embeddings import cosine_similarity
from boards.recommendation.temporal import TimeBucket, bucket_by_when
from boards.services.location_services import haversine_distance

logger = logging.getLogger(__name__)

MAX_RESULTS_CAP = 50
DEFAULT_TRUST = 0.5
RSVP_POPULARITY_WEIGHT = 0.1

TIME_BUCKET_FACTORS = {
    TimeBucket.NOW: 1.0,
    TimeBucket.TONIGHT: 0.75,
    TimeBucket.WEEKEND: 0.6,
}
DEFAULT_TIME_FACTOR = 0.4

# Reason thresholds
VERY_CLOSE_RADIUS_FRACTION = 0.4
VERY_CLOSE_MIN_KM = 1.0
TRUSTED_HOST_THRESHOLD = 0.7
TRENDING_THRESHOLD = 2.0
TASTE_MATCH_THRESHOLD = 0.6

TIME_BUCKET_REASONS = {
    TimeBucket.NOW: 'Happening right now',
    TimeBucket.TONIGHT: 'Hitting tonight',
    TimeBucket.WEEKEND: 'Weekend highlight',
}


@dataclass(frozen=True)
class ScoringWeights:
    """Per-signal weights. Built once from settings and passed to the engine."""
    vibe: float = 2.0
    distance: float = 1.5
    time: float = 1.2
    popularity: float = 1.0
    trust: float = 0.5
    embed: float = 1.0


@dataclass(frozen=True)
class UserSignals:
    """What the engine needs to know about the requesting user."""
    vibe_prefs: Sequence[str] = ()
    taste_vector: Sequence[float] = ()


@dataclass(frozen=True)
class ScoringContext:
    """Request-level inputs shared by every candidate."""
    now: datetime
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None
    when: Optional[str] = None
    vibes: Sequence[str] = ()
    max_results: int = 20


@dataclass
class Candidate:
    """An event plus the related data scoring needs."""
    event: Any
    embedding: Optional[Sequence[float]] = None
    rsvp_count: int = 0
    host_trust: Optional[float] = None


@dataclass
class ScoredEvent:
    event: Any
    score: float
    distance_km: Optional[float]
    breakdown: Dict[str, float] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)
    time_bucket: Optional[TimeBucket] = None
    cosine: float = 0.0


def resolve_trust(host_trust: Optional[float], event_trust: Optional[float]) -> float:
    """Host trust first, then the event's own trust, then the neutral default."""
    if host_trust is not None:
        return host_trust
    if event_trust is not None:
        return event_trust
    return DEFAULT_TRUST


def build_reasons(
    vibe_overlap: int,
    distance_km: Optional[float],
    radius_km: Optional[float],
    time_bucket: Optional[TimeBucket],
    host_trust: float,
    popularity: float,
    cosine: float
) -> List[str]:
    """Human-readable explanations derived from the raw signals."""
    reasons = []
    if vibe_overlap >= 2:
        reasons.append('Matches multiple of your vibes')
    elif vibe_overlap == 1:
        reasons.append('Matches one of your vibes')

    if distance_km is not None and radius_km is not None:
        if distance_km <= max(radius_km * VERY_CLOSE_RADIUS_FRACTION, VERY_CLOSE_MIN_KM):
            reasons.append('Very close to you')
        elif distance_km <= radius_km:
            reasons.append('Near your location')

    if time_bucket in TIME_BUCKET_REASONS:
        reasons.append(TIME_BUCKET_REASONS[time_bucket])

    if host_trust >= TRUSTED_HOST_THRESHOLD:
        reasons.append('Trusted host')

    if popularity >= TRENDING_THRESHOLD:
        reasons.append('Trending with the community')

    if cosine >= TASTE_MATCH_THRESHOLD:
        reasons.append('Feels like your taste')

    return reasons


class ScoringEngine:
    """Score and rank candidate events for one user."""

    def __init__(self, weights: Optional[ScoringWeights] = None, max_results_cap: int = MAX_RESULTS_CAP):
        self.weights = weights or ScoringWeights()
        self.max_results_cap = max_results_cap

    def score(self, candidate: Candidate, user: UserSignals, context: ScoringContext) -> Optional[ScoredEvent]:
        """
        Score one candidate.

        Returns None when the candidate lies beyond the search radius; an
        unknown distance is not a reason to exclude.
        """
        event = candidate.event
        w = self.weights

        distance_km = haversine_distance(
            context.lat, context.lng,
            getattr(event, 'latitude', None), getattr(event, 'longitude', None)
        )
        if context.radius_km is not None and distance_km is not None and distance_km > context.radius_km:
            return None

        search_vibes = set(user.vibe_prefs or ()) | set(context.vibes or ())
        vibe_overlap = sum(1 for tag in (getattr(event, 'vibe', None) or []) if tag in search_vibes)
        vibe_score = vibe_overlap * w.vibe

        distance_score = 0.0
        if distance_km is not None and context.radius_km:
            distance_score = w.distance * max(0.0, 1 - distance_km / context.radius_km)

        time_bucket = bucket_by_when(event.start_time, context.when, context.now)
        time_score = w.time * TIME_BUCKET_FACTORS.get(time_bucket, DEFAULT_TIME_FACTOR)

        popularity = (getattr(event, 'popularity_score', None) or 0.0) + candidate.rsvp_count * RSVP_POPULARITY_WEIGHT
        popularity_score = popularity * w.popularity

        trust = resolve_trust(candidate.host_trust, getattr(event, 'trust_score', None))
        trust_score = trust * w.trust

        cosine = cosine_similarity(user.taste_vector, candidate.embedding)
        embed_score = cosine * w.embed

        breakdown = {
            'vibe': vibe_score,
            'distance': distance_score,
            'time': time_score,
            'popularity': popularity_score,
            'trust': trust_score,
            'embed': embed_score,
        }
        total = round(sum(breakdown.values()), 3)

        return ScoredEvent(
            event=event,
            score=total,
            distance_km=distance_km,
            breakdown={name: round(value, 3) for name, value in breakdown.items()},
            reasons=build_reasons(
                vibe_overlap=vibe_overlap,
                distance_km=distance_km,
                radius_km=context.radius_km,
                time_bucket=time_bucket,
                host_trust=trust,
                popularity=popularity,
                cosine=cosine,
            ),
            time_bucket=time_bucket,
            cosine=cosine,
        )

    def rank(
        self,
        candidates: Iterable[Candidate],
        user: UserSignals,
        context: ScoringContext
    ) -> List[ScoredEvent]:
        """Score all candidates, drop excluded ones, sort by score, cap the list."""
        scored = []
        excluded = 0
        for candidate in candidates:
            result = self.score(candidate, user, context)
            if result is None:
                excluded += 1
                continue
            scored.append(result)

        # sorted() is stable, so equal scores keep candidate order
        scored = sorted(scored, key=lambda item: item.score, reverse=True)
        limit = max(0, min(context.max_results, self.max_results_cap))

        logger.debug(
            "Ranked candidates",
            extra={'scored': len(scored), 'excluded': excluded, 'limit': limit}
        )
        return scored[:limit]
