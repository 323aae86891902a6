"""Single-frame pitch estimation.

Two independent detectors run on every frame and are reconciled into one
estimate:
- Time domain: cumulative-mean-normalized difference function (YIN family)
- Frequency domain: harmonic product spectrum (HPS)
"""

import logging
from typing import Dict, Optional

import numpy as np
import scipy.signal

from ..core import AudioFrame, PitchConfig, PitchEstimate
from .backends import AnalysisBackend, CpuBackend
from .spectrum import bin_hz, db_to_amplitude

logger = logging.getLogger(__name__)


def cumulative_mean_normalized_difference(differences: np.ndarray) -> np.ndarray:
    """
    Normalize a difference function by its running mean.

    cmndf[0] = 1 and cmndf[lag] = d(lag) * lag / sum(d[1..lag]). Lags whose
    running sum is zero (silent input) are set to 1.
    """
    cmndf = np.ones(len(differences), dtype=np.float64)
    if len(differences) < 2:
        return cmndf

    running = np.cumsum(differences[1:])
    lags = np.arange(1, len(differences))
    with np.errstate(divide="ignore", invalid="ignore"):
        values = differences[1:] * lags / running
    cmndf[1:] = np.where(running > 0, values, 1.0)
    return cmndf


def parabolic_offset(y0: float, y1: float, y2: float) -> float:
    """Sub-sample offset of the vertex of the parabola through three points."""
    denom = y0 - 2.0 * y1 + y2
    if denom == 0:
        return 0.0
    return (y0 - y2) / (2.0 * denom)


class PitchEstimator:
    """Fuses a difference-function detector and an HPS detector.

    Features:
    - Hann-windowed CMNDF with first-dip search and parabolic refinement
    - HPS restricted to bins where the fundamental is actually present
    - Octave-error guard that favours a confident lower time-domain estimate
    """

    def __init__(
        self,
        config: Optional[PitchConfig] = None,
        backend: Optional[AnalysisBackend] = None,
    ):
        """
        Initialize PitchEstimator.

        Args:
            config: Detector thresholds and musical range
            backend: Numerical kernels (CPU reference implementation by default)
        """
        self.config = config or PitchConfig()
        self.backend = backend or CpuBackend()
        self._windows: Dict[int, np.ndarray] = {}

    def estimate(self, frame: AudioFrame) -> Optional[PitchEstimate]:
        """
        Estimate the fundamental of one frame.

        Returns:
            PitchEstimate, or None when neither detector finds a pitch
        """
        time_result = self.detect_time_domain(frame.time_domain, frame.sample_rate)
        freq_result = self.detect_frequency_domain(frame.frequency_db, frame.sample_rate)
        return self.reconcile(time_result, freq_result)

    def _hann(self, size: int) -> np.ndarray:
        window = self._windows.get(size)
        if window is None:
            window = scipy.signal.get_window("hann", size, fftbins=False)
            self._windows[size] = window
        return window

    def detect_time_domain(
        self, samples: np.ndarray, sample_rate: int
    ) -> Optional[PitchEstimate]:
        """Difference-function (YIN-style) detector."""
        cfg = self.config
        windowed = np.asarray(samples, dtype=np.float64) * self._hann(len(samples))

        min_lag = max(1, int(sample_rate // cfg.fmax))
        max_lag = min(int(sample_rate // cfg.fmin), len(windowed) - 1)
        if max_lag - min_lag < 3:
            return None

        differences = self.backend.difference_function(windowed, max_lag)
        cmndf = cumulative_mean_normalized_difference(differences)

        # First dip below threshold, followed down to its local minimum
        below = np.flatnonzero(cmndf[min_lag:max_lag - 1] < cfg.cmndf_threshold)
        if below.size:
            lag = min_lag + int(below[0])
            while lag + 1 < max_lag and cmndf[lag + 1] < cmndf[lag]:
                lag += 1
        else:
            lag = min_lag + int(np.argmin(cmndf[min_lag:max_lag]))
            if cmndf[lag] >= 1.0:
                return None

        best = float(cmndf[lag])
        if best > cfg.cmndf_reject:
            return None

        refined = float(lag)
        if 0 < lag < max_lag - 1:
            refined += parabolic_offset(cmndf[lag - 1], cmndf[lag], cmndf[lag + 1])
        if refined <= 0:
            return None

        return PitchEstimate(
            frequency_hz=sample_rate / refined,
            confidence=float(np.clip(1.0 - best, 0.0, 1.0)),
        )

    def detect_frequency_domain(
        self, frequency_db: np.ndarray, sample_rate: int
    ) -> Optional[PitchEstimate]:
        """Harmonic product spectrum detector."""
        cfg = self.config
        db = np.asarray(frequency_db, dtype=np.float64)
        magnitudes = db_to_amplitude(db)
        bin_width = bin_hz(sample_rate, len(db))

        hps = self.backend.harmonic_product(magnitudes, cfg.hps_harmonics)
        min_bin = max(1, int(cfg.fmin // bin_width))
        max_bin = min(int(cfg.fmax // bin_width), len(hps) - 1)
        if max_bin <= min_bin:
            return None

        # Only bins carrying real energy can be the fundamental
        band = slice(min_bin, max_bin + 1)
        present = magnitudes[band] >= cfg.hps_min_fundamental_ratio * magnitudes[band].max()
        candidates = np.where(present, hps[band], 0.0)

        peak = min_bin + int(np.argmax(candidates))
        peak_value = float(hps[peak])
        if peak_value < cfg.hps_floor:
            return None

        # Refine on the spectral peak of the fundamental's main lobe
        lo, hi = max(1, peak - 2), min(len(db) - 1, peak + 3)
        local = lo + int(np.argmax(magnitudes[lo:hi]))
        refined = float(local)
        if 0 < local < len(db) - 1:
            refined += parabolic_offset(db[local - 1], db[local], db[local + 1])

        confidence = min(1.0, peak_value / (float(np.mean(hps)) * 10.0 + 1e-10))

        return PitchEstimate(frequency_hz=refined * bin_width, confidence=confidence)

    def reconcile(
        self,
        time_result: Optional[PitchEstimate],
        freq_result: Optional[PitchEstimate],
    ) -> Optional[PitchEstimate]:
        """
        Merge the two detector outputs.

        - Agreeing estimates: HPS frequency, averaged confidence
        - A confident lower time-domain estimate wins (HPS octave errors)
        - Otherwise the more confident detector wins
        """
        if time_result is None or freq_result is None:
            return time_result or freq_result

        cfg = self.config
        ratio = time_result.frequency_hz / freq_result.frequency_hz
        if 1.0 - cfg.agreement_tolerance < ratio < 1.0 + cfg.agreement_tolerance:
            return PitchEstimate(
                frequency_hz=freq_result.frequency_hz,
                confidence=(time_result.confidence + freq_result.confidence) / 2,
            )

        if (
            time_result.frequency_hz < freq_result.frequency_hz
            and time_result.confidence > cfg.time_domain_preference
        ):
            logger.debug(
                "Preferring time-domain %.1f Hz over HPS %.1f Hz",
                time_result.frequency_hz,
                freq_result.frequency_hz,
            )
            return time_result

        if time_result.confidence > freq_result.confidence:
            return time_result
        return freq_result
