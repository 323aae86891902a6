"""Engine configuration.

Every empirically tuned threshold lives here so it can be adjusted (and
exercised by tests) without touching the analyzers.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import (
    DEFAULT_CHROMA_HISTORY,
    DEFAULT_FFT_SIZE,
    DEFAULT_LEDGER_CAPACITY,
    DEFAULT_RECENT_NOTES,
    DEFAULT_SMOOTHING,
    DEFAULT_SR,
    DEFAULT_TICK_INTERVAL,
    REFERENCE_HZ,
)


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass
class PitchConfig:
    """Pitch estimator settings.

    Attributes:
        fmin: Lowest fundamental considered (Hz)
        fmax: Highest fundamental considered (Hz)
        cmndf_threshold: First-dip threshold for the difference detector
        cmndf_reject: Difference detector gives up above this minimum
        hps_harmonics: Number of harmonics multiplied in the HPS
        hps_min_fundamental_ratio: HPS peak bins need at least this share of the band's peak magnitude
        hps_floor: HPS peaks below this product are treated as no pitch
        agreement_tolerance: Relative distance at which both detectors agree
        time_domain_preference: Time-domain confidence needed to override a higher HPS estimate
    """

    fmin: float = 60.0
    fmax: float = 2000.0
    cmndf_threshold: float = 0.2
    cmndf_reject: float = 0.5
    hps_harmonics: int = 4
    hps_min_fundamental_ratio: float = 0.05
    hps_floor: float = 1e-10
    agreement_tolerance: float = 0.05
    time_domain_preference: float = 0.4

    def __post_init__(self):
        _check_positive("fmin", self.fmin)
        if self.fmax <= self.fmin:
            raise ValueError(f"fmax ({self.fmax}) must exceed fmin ({self.fmin})")
        _check_unit("cmndf_threshold", self.cmndf_threshold)
        _check_unit("hps_min_fundamental_ratio", self.hps_min_fundamental_ratio)
        _check_unit("agreement_tolerance", self.agreement_tolerance)
        _check_unit("time_domain_preference", self.time_domain_preference)
        if self.hps_harmonics < 1:
            raise ValueError(f"hps_harmonics must be >= 1, got {self.hps_harmonics}")


@dataclass
class StabilizerConfig:
    """Note stabilizer settings."""

    history_size: int = 7
    min_confidence: float = 0.3
    silence_rms: float = 0.01
    min_note_duration: float = 0.08  # seconds
    reference_hz: float = REFERENCE_HZ

    def __post_init__(self):
        if self.history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {self.history_size}")
        _check_unit("min_confidence", self.min_confidence)
        _check_positive("reference_hz", self.reference_hz)
        if self.min_note_duration < 0:
            raise ValueError("min_note_duration must not be negative")


@dataclass
class ChromaConfig:
    """Chroma extractor settings."""

    fmin: float = 80.0
    fmax: float = 2000.0
    epsilon: float = 1e-4
    reference_hz: float = REFERENCE_HZ

    def __post_init__(self):
        _check_positive("fmin", self.fmin)
        if self.fmax <= self.fmin:
            raise ValueError(f"fmax ({self.fmax}) must exceed fmin ({self.fmin})")
        _check_positive("epsilon", self.epsilon)


@dataclass
class KeyConfig:
    """Key estimator settings.

    Attributes:
        history_size: Chroma vectors averaged for key finding
        min_history: Fewer vectors than this yields no key
        std_epsilon: Averaged chroma flatter than this is treated as silence
        correlation_floor: Raw correlation needed unless the tonic prior is strong
        prior_floor: Prior strength that keeps a weakly correlated estimate alive
        prior_weight: Weight of the tonic prior added to the matching root's score
        prior_window: Seconds of ledger history scanned for the prior
        prior_half_life: Recency half-life for ledger entries (seconds)
        duration_cap: Longest duration credited to a single note (seconds)
        min_prior_share: Dominant pitch class needs at least this share of prior weight
        tonic_boost: Confidence multiplier per unit of prior strength
        histogram_min_confidence: Keys below this confidence are not counted in the histogram
    """

    history_size: int = DEFAULT_CHROMA_HISTORY
    min_history: int = 3
    std_epsilon: float = 1e-3
    correlation_floor: float = 0.33
    prior_floor: float = 0.35
    prior_weight: float = 0.22
    prior_window: float = 15.0
    prior_half_life: float = 6.0
    duration_cap: float = 2.5
    min_prior_share: float = 0.22
    tonic_boost: float = 0.15
    histogram_min_confidence: float = 0.3

    def __post_init__(self):
        if self.min_history < 1 or self.history_size < self.min_history:
            raise ValueError(
                f"history_size ({self.history_size}) must be >= min_history ({self.min_history}) >= 1"
            )
        if not -1.0 <= self.correlation_floor < 1.0:
            raise ValueError(f"correlation_floor must be within [-1, 1), got {self.correlation_floor}")
        _check_positive("prior_window", self.prior_window)
        _check_positive("prior_half_life", self.prior_half_life)
        _check_positive("duration_cap", self.duration_cap)
        _check_unit("min_prior_share", self.min_prior_share)
        _check_unit("histogram_min_confidence", self.histogram_min_confidence)


@dataclass
class ScaleConfig:
    """Scale interpolator settings."""

    min_distinct: int = 3
    min_matched: int = 3
    min_confidence: float = 0.35
    reference_size: int = 7
    purity_weight: float = 0.7
    coverage_weight: float = 0.3
    max_candidates: int = 5

    def __post_init__(self):
        _check_unit("min_confidence", self.min_confidence)
        if abs(self.purity_weight + self.coverage_weight - 1.0) > 1e-9:
            raise ValueError("purity_weight and coverage_weight must sum to 1")
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be >= 1, got {self.max_candidates}")


_SECTIONS = {
    "pitch": PitchConfig,
    "stabilizer": StabilizerConfig,
    "chroma": ChromaConfig,
    "key": KeyConfig,
    "scales": ScaleConfig,
}


@dataclass
class EngineConfig:
    """Top-level engine configuration.

    Attributes:
        sample_rate: Expected frame sample rate (Hz)
        fft_size: Time-domain window length N (frequency window is N/2)
        tick_interval: Seconds between analysis ticks
        smoothing: Temporal smoothing of the analyser spectrum (0 = none)
        ledger_capacity: Maximum note events kept as evidence
        recent_notes: Length of the recent-note tail in snapshots
        backend: Name of the analysis backend
        scale_root: Restrict scale candidates to this root pitch class
    """

    sample_rate: int = DEFAULT_SR
    fft_size: int = DEFAULT_FFT_SIZE
    tick_interval: float = DEFAULT_TICK_INTERVAL
    smoothing: float = DEFAULT_SMOOTHING
    ledger_capacity: int = DEFAULT_LEDGER_CAPACITY
    recent_notes: int = DEFAULT_RECENT_NOTES
    backend: str = "cpu"
    scale_root: Optional[int] = None
    pitch: PitchConfig = field(default_factory=PitchConfig)
    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    chroma: ChromaConfig = field(default_factory=ChromaConfig)
    key: KeyConfig = field(default_factory=KeyConfig)
    scales: ScaleConfig = field(default_factory=ScaleConfig)

    def __post_init__(self):
        _check_positive("sample_rate", self.sample_rate)
        if self.fft_size < 64 or self.fft_size % 2:
            raise ValueError(f"fft_size must be an even number >= 64, got {self.fft_size}")
        _check_positive("tick_interval", self.tick_interval)
        _check_unit("smoothing", self.smoothing)
        if self.ledger_capacity < 1:
            raise ValueError(f"ledger_capacity must be >= 1, got {self.ledger_capacity}")
        if self.scale_root is not None and not 0 <= self.scale_root < 12:
            raise ValueError(f"scale_root must be a pitch class 0-11, got {self.scale_root}")
        if self.pitch.fmax >= self.sample_rate / 2:
            raise ValueError("pitch.fmax must be below the Nyquist frequency")
        if self.sample_rate / self.pitch.fmin >= self.fft_size:
            raise ValueError(
                f"fft_size {self.fft_size} is too short for fmin {self.pitch.fmin} Hz "
                f"at {self.sample_rate} Hz"
            )

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from a (possibly partial) nested dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        for name, value in data.items():
            section = _SECTIONS.get(name)
            if section is not None:
                section_known = {f.name for f in fields(section)}
                bad = set(value) - section_known
                if bad:
                    raise ValueError(f"Unknown keys in '{name}': {sorted(bad)}")
                kwargs[name] = section(**value)
            else:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load a JSON config file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return cls.from_dict(json.load(f))
