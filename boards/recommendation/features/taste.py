"""User taste vectors aggregated from interaction history."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from boards.recommendation.models.embeddings import EMBEDDING_DIM, is_valid_vector, normalize_vector
from boards.recommendation.temporal import as_aware

logger = logging.getLogger(__name__)

DEFAULT_ACTION_WEIGHTS: Mapping[str, float] = {
    'going': 1.0,
    'cosign': 0.8,
    'view': 0.1,
    'hide': -0.5,
}

SECONDS_PER_DAY = 86400.0
DWELL_BOOST_SCALE_MS = 30000.0
MAX_DWELL_BOOST = 2.0


@dataclass(frozen=True)
class TasteOptions:
    """Weighting options for taste aggregation."""
    action_weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_ACTION_WEIGHTS))
    recency_decay: bool = True
    decay_half_life_days: float = 30.0


@dataclass(frozen=True)
class TasteSignal:
    """One interaction paired with the embedding of the event it touched."""
    action: str
    embedding: Optional[Sequence[float]]
    created_at: Optional[datetime] = None
    dwell_ms: Optional[float] = None

    @classmethod
    def from_interaction(cls, interaction: Any) -> "TasteSignal":
        """Build a signal from an Interaction row with its event and embedding loaded."""
        event = getattr(interaction, 'event', None)
        embedding = getattr(event, 'embedding', None) if event is not None else None
        return cls(
            action=interaction.action,
            embedding=getattr(embedding, 'vector', None),
            created_at=interaction.created_at,
            dwell_ms=interaction.dwell_ms,
        )


class TasteVectorAggregator:
    """Weighted, recency-decayed average of interacted event embeddings."""

    def __init__(self, options: Optional[TasteOptions] = None):
        self.options = options or TasteOptions()

    def signal_weight(self, signal: TasteSignal, now: datetime) -> float:
        """Effective weight: action weight x recency decay x dwell boost (views only)."""
        weight = self.options.action_weights.get(signal.action, 0.0)

        if self.options.recency_decay and signal.created_at is not None:
            days_since = (as_aware(now) - as_aware(signal.created_at)).total_seconds() / SECONDS_PER_DAY
            weight *= 0.5 ** (days_since / self.options.decay_half_life_days)

        if signal.action == 'view' and signal.dwell_ms:
            weight *= min(MAX_DWELL_BOOST, 1 + signal.dwell_ms / DWELL_BOOST_SCALE_MS)

        return weight

    def aggregate(self, signals: Iterable[TasteSignal], now: datetime) -> List[float]:
        """
        Compute a unit taste vector from interaction signals.

        Signals without a valid 8-dimensional embedding are skipped. Returns an
        empty list when nothing qualifies.

        Args:
            signals: Interaction signals with their event embeddings
            now: Evaluation time for recency decay

        Returns:
            Unit-normalized taste vector, or [] for no signal
        """
        vector = np.zeros(EMBEDDING_DIM, dtype=float)
        total_weight = 0.0
        used = 0

        for signal in signals:
            if not is_valid_vector(signal.embedding):
                continue

            weight = self.signal_weight(signal, now)
            if weight == 0:
                continue

            vector += np.asarray(signal.embedding, dtype=float) * weight
            total_weight += abs(weight)
            used += 1

        if used == 0:
            return []

        if total_weight > 0:
            vector /= total_weight

        # Signals that cancel out exactly carry no direction
        if not np.any(vector):
            return []

        logger.debug("Aggregated taste vector", extra={'signals_used': used, 'total_weight': total_weight})
        return normalize_vector(vector)

    def aggregate_interactions(self, interactions: Iterable[Any], now: datetime) -> List[float]:
        """Aggregate directly from Interaction rows."""
        return self.aggregate((TasteSignal.from_interaction(i) for i in interactions), now)
