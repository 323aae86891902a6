"""Key estimation - Identify the prevailing tonal center of a live stream.

Implements streaming key detection with:
- Krumhansl-Schmuckler key profiles (z-score normalized once)
- Averaging over a rolling chroma history
- A dominant-tonic prior derived from recent, confident, held notes
- Floor-shifted confidence with a tonic boost
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import numpy as np

from ..core import KeyConfig, PITCH_NAMES
from .ledger import NoteLedger


class Mode(Enum):
    """Musical modes."""
    MAJOR = "major"
    MINOR = "minor"


@dataclass(frozen=True)
class KeyEstimate:
    """Container for key detection results."""

    tonic: Optional[int]  # Pitch class of the key root (None = no reliable key)
    mode: Mode = Mode.MAJOR
    confidence: float = 0.0  # 0.0 - 1.0
    correlation: float = 0.0  # Best raw profile correlation
    prior_strength: float = 0.0  # Share of the dominant tonic prior (0 = rejected)

    @classmethod
    def none(cls) -> "KeyEstimate":
        return cls(tonic=None)

    @property
    def root(self) -> Optional[str]:
        """Key root note (e.g., "C", "F#")."""
        if self.tonic is None:
            return None
        return PITCH_NAMES[self.tonic]

    @property
    def name(self) -> Optional[str]:
        if self.tonic is None:
            return None
        return f"{self.root} {self.mode.value}"

    @property
    def relative_key(self) -> Optional[str]:
        """
        Get the relative major/minor key.

        Relative minor is 3 semitones down from major.
        Relative major is 3 semitones up from minor.
        """
        if self.tonic is None:
            return None
        if self.mode is Mode.MAJOR:
            return f"{PITCH_NAMES[(self.tonic - 3) % 12]} minor"
        return f"{PITCH_NAMES[(self.tonic + 3) % 12]} major"

    @property
    def parallel_key(self) -> Optional[str]:
        """Get the parallel major/minor key (same root, different mode)."""
        if self.tonic is None:
            return None
        other = Mode.MINOR if self.mode is Mode.MAJOR else Mode.MAJOR
        return f"{self.root} {other.value}"


@dataclass
class TonicPrior:
    """Ledger-derived evidence for the tonic."""

    pitch_class: Optional[int] = None
    strength: float = 0.0


class KeyEstimator:
    """Detect the musical key from a rolling chroma history.

    Raw scores are Pearson correlations of the averaged chroma against the
    24 rotated major/minor profiles. The root favoured by the tonic prior
    gets `prior_weight * strength` added to both of its modes.
    """

    # Krumhansl-Schmuckler key profiles (cognitive-based)
    KRUMHANSL_MAJOR = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    KRUMHANSL_MINOR = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    MODES = (Mode.MAJOR, Mode.MINOR)

    def __init__(self, config: Optional[KeyConfig] = None):
        """
        Initialize KeyEstimator.

        Args:
            config: History sizes, thresholds and prior parameters
        """
        self.config = config or KeyConfig()
        self._history: deque = deque(maxlen=self.config.history_size)

        # rotated[root, mode] is the profile for that key, indexed by pitch class
        profiles = [_zscore(self.KRUMHANSL_MAJOR), _zscore(self.KRUMHANSL_MINOR)]
        self._rotated = np.stack(
            [np.stack([np.roll(p, root) for p in profiles]) for root in range(12)]
        )

    def __len__(self) -> int:
        return len(self._history)

    def push(self, chroma: np.ndarray) -> None:
        """Append one chroma vector to the rolling history."""
        chroma = np.asarray(chroma, dtype=np.float64)
        if chroma.shape != (12,):
            raise ValueError(f"Chroma vector must have 12 elements, got {chroma.shape}")
        self._history.append(chroma)

    def reset(self) -> None:
        self._history.clear()

    def average_chroma(self) -> Optional[np.ndarray]:
        if not self._history:
            return None
        return np.mean(np.stack(self._history), axis=0)

    def correlations(self, chroma: np.ndarray) -> np.ndarray:
        """
        Correlate a chroma vector against every key.

        Returns:
            Array of shape (12, 2): [root, mode] Pearson correlations
        """
        chroma = np.asarray(chroma, dtype=np.float64)
        if chroma.std() == 0:
            return np.zeros((12, 2))

        normalized = _zscore(chroma)
        dots = self._rotated @ normalized
        norms = np.linalg.norm(self._rotated, axis=2) * np.linalg.norm(normalized)
        return dots / norms

    def tonic_prior(
        self,
        ledger: NoteLedger,
        competence: Optional[Dict[int, float]],
        now: float,
    ) -> TonicPrior:
        """
        Weight recent ledger entries by recency, confidence, competence and duration.

        Returns:
            TonicPrior whose strength is the dominant class's share of the total
            weight, or 0 when that share is below `min_prior_share`
        """
        cfg = self.config
        competence = competence or {}
        weights = np.zeros(12)

        for event in ledger.since(now - cfg.prior_window):
            age = max(0.0, now - event.end)
            recency = 0.5 ** (age / cfg.prior_half_life)
            confidence_factor = 0.2 + 0.8 * event.confidence
            competence_factor = 0.2 + 0.8 * competence.get(event.pitch_class, 0.0)
            duration_factor = min(max(event.duration, 0.0), cfg.duration_cap)
            weights[event.pitch_class] += (
                recency * confidence_factor * competence_factor * duration_factor
            )

        total = weights.sum()
        if total <= 0:
            return TonicPrior()

        dominant = int(np.argmax(weights))
        share = float(weights[dominant] / total)
        if share < cfg.min_prior_share:
            return TonicPrior()
        return TonicPrior(pitch_class=dominant, strength=share)

    def estimate(
        self,
        ledger: Optional[NoteLedger] = None,
        competence: Optional[Dict[int, float]] = None,
        now: float = 0.0,
    ) -> KeyEstimate:
        """
        Estimate the key from the chroma history and (optionally) the ledger.

        Args:
            ledger: Note evidence for the tonic prior
            competence: Per-pitch-class competence scores
            now: Engine clock in seconds

        Returns:
            KeyEstimate (tonic None with 0 confidence when unreliable)
        """
        cfg = self.config
        if len(self._history) < cfg.min_history:
            return KeyEstimate.none()

        average = self.average_chroma()
        if average.std() < cfg.std_epsilon:
            return KeyEstimate.none()

        raw = self.correlations(average)
        prior = self.tonic_prior(ledger, competence, now) if ledger is not None else TonicPrior()

        scores = raw.copy()
        if prior.pitch_class is not None:
            scores[prior.pitch_class, :] += cfg.prior_weight * prior.strength

        best_raw = float(raw.max())
        if best_raw < cfg.correlation_floor and prior.strength < cfg.prior_floor:
            return KeyEstimate.none()

        root, mode_index = np.unravel_index(int(np.argmax(scores)), scores.shape)
        score = float(scores[root, mode_index])

        confidence = (score - cfg.correlation_floor) / (1.0 - cfg.correlation_floor)
        confidence = float(np.clip(confidence, 0.0, 1.0))
        if prior.pitch_class is not None:
            confidence = float(np.clip(confidence * (1.0 + cfg.tonic_boost * prior.strength), 0.0, 1.0))

        return KeyEstimate(
            tonic=int(root),
            mode=self.MODES[mode_index],
            confidence=confidence,
            correlation=best_raw,
            prior_strength=prior.strength,
        )


def _zscore(values: np.ndarray) -> np.ndarray:
    std = values.std()
    if std == 0:
        return np.zeros_like(values, dtype=np.float64)
    return (values - values.mean()) / std
