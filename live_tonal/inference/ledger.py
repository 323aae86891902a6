"""Note evidence ledger - a bounded, time-ordered record of held notes.

The ledger is the single source of evidence for tonic priors, competence,
and scale interpolation.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np

from ..core import NoteEvent
from ..core.constants import DEFAULT_LEDGER_CAPACITY


@dataclass
class PitchClassStats:
    """Aggregated evidence for one pitch class."""

    count: int = 0
    total_duration: float = 0.0
    confidence_sum: float = 0.0

    @property
    def mean_confidence(self) -> float:
        if self.count == 0:
            return 0.0
        return self.confidence_sum / self.count


class NoteLedger:
    """FIFO of NoteEvents with a fixed capacity; the oldest entry is evicted on overflow."""

    # Competence weighting
    COUNT_WEIGHT = 0.4
    DURATION_WEIGHT = 0.4
    CONFIDENCE_WEIGHT = 0.2

    def __init__(self, capacity: int = DEFAULT_LEDGER_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Ledger capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._events: deque = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[NoteEvent]:
        return iter(self._events)

    def append(self, event: NoteEvent) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[NoteEvent]) -> None:
        for event in events:
            self.append(event)

    def clear(self) -> None:
        self._events.clear()

    def recent(self, count: int) -> List[NoteEvent]:
        """The last `count` events, oldest first."""
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def since(self, start: float) -> List[NoteEvent]:
        """Events that ended at or after `start`."""
        return [event for event in self._events if event.end >= start]

    def stats(self) -> Dict[int, PitchClassStats]:
        """Per-pitch-class count, total duration, and confidence sum."""
        stats: Dict[int, PitchClassStats] = {}
        for event in self._events:
            entry = stats.setdefault(event.pitch_class, PitchClassStats())
            entry.count += 1
            entry.total_duration += event.duration
            entry.confidence_sum += event.confidence
        return stats

    def competence(self, stats: Optional[Dict[int, PitchClassStats]] = None) -> Dict[int, float]:
        """
        Competence score (0-1) for each observed pitch class.

        0.4 * occurrences + 0.4 * total duration + 0.2 * mean confidence,
        each normalized against its maximum across observed classes.
        """
        stats = self.stats() if stats is None else stats
        if not stats:
            return {}

        max_count = max(s.count for s in stats.values())
        max_duration = max(s.total_duration for s in stats.values())
        max_confidence = max(s.mean_confidence for s in stats.values())

        competence = {}
        for pitch_class, s in stats.items():
            score = (
                self.COUNT_WEIGHT * _ratio(s.count, max_count)
                + self.DURATION_WEIGHT * _ratio(s.total_duration, max_duration)
                + self.CONFIDENCE_WEIGHT * _ratio(s.mean_confidence, max_confidence)
            )
            competence[pitch_class] = float(np.clip(score, 0.0, 1.0))
        return competence


def _ratio(value: float, maximum: float) -> float:
    if maximum <= 0:
        return 0.0
    return value / maximum
