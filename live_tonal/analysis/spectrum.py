"""Spectrum helpers shared by the frame sources.

Every source produces its frequency window the same way a browser
analyser node does: Blackman window, magnitude scaled by 1/N, exponential
smoothing against the previous frame, then conversion to dB.
"""

from typing import Optional

import numpy as np
import scipy.fft
import scipy.signal

from ..core.constants import MIN_DB


def rms(samples: np.ndarray) -> float:
    """Root-mean-square level of a buffer (0-1 for normalized audio)."""
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))


def amplitude_to_db(magnitude: np.ndarray, min_db: float = MIN_DB) -> np.ndarray:
    """Convert linear magnitude to dB with a finite floor."""
    floor = 10.0 ** (min_db / 20.0)
    return 20.0 * np.log10(np.maximum(magnitude, floor))


def db_to_amplitude(db: np.ndarray) -> np.ndarray:
    return np.power(10.0, np.asarray(db, dtype=np.float64) / 20.0)


def bin_hz(sample_rate: int, bin_count: int) -> float:
    """Width in Hz of one bin of an N/2-bin magnitude spectrum."""
    return sample_rate / (2 * bin_count)


class SpectrumAnalyser:
    """Stateful magnitude spectrum with temporal smoothing."""

    def __init__(self, fft_size: int, smoothing: float = 0.6, min_db: float = MIN_DB):
        """
        Initialize SpectrumAnalyser.

        Args:
            fft_size: Window length N; the output has N/2 bins
            smoothing: Weight of the previous frame (0 = no smoothing)
            min_db: Floor used for silent bins
        """
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_db = min_db
        self._window = scipy.signal.get_window("blackman", fft_size)
        self._previous: Optional[np.ndarray] = None

    def reset(self) -> None:
        self._previous = None

    def process(self, samples: np.ndarray) -> np.ndarray:
        """
        Compute the dB magnitude window for one time-domain buffer.

        Args:
            samples: Exactly fft_size samples

        Returns:
            fft_size // 2 magnitudes in dB
        """
        spectrum = scipy.fft.rfft(samples * self._window)
        magnitude = np.abs(spectrum[: self.fft_size // 2]) / self.fft_size

        if self._previous is not None and self.smoothing > 0:
            magnitude = self.smoothing * self._previous + (1.0 - self.smoothing) * magnitude
        self._previous = magnitude

        return amplitude_to_db(magnitude, self.min_db)
