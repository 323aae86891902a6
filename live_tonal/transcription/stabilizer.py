"""Note stabilization - turn frame-level pitch estimates into held notes."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..core import NoteEvent, PitchEstimate, StabilizerConfig, frequency_to_pitch, note_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StablePitch:
    """The smoothed pitch for the current tick."""

    frequency_hz: float
    pitch_class: int
    octave: int

    @property
    def name(self) -> str:
        """Note name with octave (e.g., 'A4')."""
        return note_name(self.pitch_class, self.octave)


class NoteStabilizer:
    """Median-smooths pitch estimates and debounces them into NoteEvents.

    A note is emitted when its pitch class changes or the input falls silent,
    and only if it was held for at least `min_note_duration` seconds.
    """

    def __init__(self, config: Optional[StabilizerConfig] = None):
        self.config = config or StabilizerConfig()
        self._frequencies: deque = deque(maxlen=self.config.history_size)
        self._held: Optional[StablePitch] = None
        self._hold_start = 0.0
        self._confidence_sum = 0.0
        self._confidence_count = 0
        self._frequency_sum = 0.0

    @property
    def held(self) -> Optional[StablePitch]:
        """Pitch currently being held, if any."""
        return self._held

    def reset(self) -> None:
        self._frequencies.clear()
        self._held = None
        self._hold_start = 0.0
        self._confidence_sum = 0.0
        self._confidence_count = 0
        self._frequency_sum = 0.0

    def accepts(self, estimate: Optional[PitchEstimate], level: float) -> bool:
        """Whether an estimate is confident and loud enough to count."""
        return (
            estimate is not None
            and estimate.confidence > self.config.min_confidence
            and level > self.config.silence_rms
        )

    def update(
        self,
        estimate: Optional[PitchEstimate],
        level: float,
        now: float,
    ) -> Tuple[Optional[StablePitch], List[NoteEvent]]:
        """
        Feed one tick's estimate.

        Args:
            estimate: Pitch estimate for the frame (None if no pitch)
            level: Frame RMS level
            now: Engine clock in seconds

        Returns:
            Tuple of (stable pitch for this tick or None, finished notes)
        """
        events: List[NoteEvent] = []

        if not self.accepts(estimate, level):
            finished = self._finalize(now)
            if finished is not None:
                events.append(finished)
            self._held = None
            self._frequencies.clear()
            return None, events

        self._frequencies.append(estimate.frequency_hz)
        ordered = sorted(self._frequencies)
        median = ordered[len(ordered) // 2]
        pitch_class, octave = frequency_to_pitch(median, self.config.reference_hz)
        pitch = StablePitch(frequency_hz=median, pitch_class=pitch_class, octave=octave)

        if self._held is None or self._held.pitch_class != pitch_class:
            finished = self._finalize(now)
            if finished is not None:
                events.append(finished)
            self._held = pitch
            self._hold_start = now
            self._confidence_sum = 0.0
            self._confidence_count = 0
            self._frequency_sum = 0.0

        self._confidence_sum += estimate.confidence
        self._confidence_count += 1
        self._frequency_sum += median

        return pitch, events

    def _finalize(self, now: float) -> Optional[NoteEvent]:
        """Close the held note, returning it if it lasted long enough."""
        if self._held is None:
            return None

        duration = now - self._hold_start
        if duration < self.config.min_note_duration or self._confidence_count == 0:
            return None

        event = NoteEvent(
            pitch_class=self._held.pitch_class,
            timestamp=self._hold_start,
            duration=duration,
            confidence=float(np.clip(self._confidence_sum / self._confidence_count, 0.0, 1.0)),
            octave=self._held.octave,
            frequency_hz=self._frequency_sum / self._confidence_count,
        )
        logger.debug("Note %s held %.3fs (confidence %.2f)", self._held.name, duration, event.confidence)
        return event
