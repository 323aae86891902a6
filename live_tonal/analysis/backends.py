"""Analysis backends - pluggable kernels behind the pitch detectors.

The CPU backend is the reference implementation. Accelerated backends
implement the same two kernels and set `accelerated = True`.
"""

from abc import ABC, abstractmethod
from typing import Dict, Type

import numpy as np
import scipy.fft


class AnalysisBackend(ABC):
    """Abstract base class for the numerical kernels of pitch detection."""

    name: str = "abstract"
    accelerated: bool = False

    @abstractmethod
    def difference_function(self, samples: np.ndarray, max_lag: int) -> np.ndarray:
        """
        Squared difference d(lag) = sum((x[i] - x[i + lag])^2) for lag in [0, max_lag).

        Args:
            samples: Windowed time-domain buffer
            max_lag: Number of lags to evaluate (must not exceed len(samples))

        Returns:
            Array of max_lag differences
        """
        pass

    @abstractmethod
    def harmonic_product(self, magnitudes: np.ndarray, n_harmonics: int) -> np.ndarray:
        """
        Harmonic product spectrum hps[i] = prod(magnitudes[i * h]) for h = 1..n_harmonics.

        Args:
            magnitudes: Linear magnitude spectrum
            n_harmonics: Number of downsampled copies to multiply

        Returns:
            Array of len(magnitudes) // n_harmonics products
        """
        pass


class CpuBackend(AnalysisBackend):
    """Reference implementation on numpy/scipy."""

    name = "cpu"
    accelerated = False

    def difference_function(self, samples: np.ndarray, max_lag: int) -> np.ndarray:
        x = np.asarray(samples, dtype=np.float64)
        n = len(x)
        if max_lag > n:
            raise ValueError(f"max_lag {max_lag} exceeds buffer length {n}")

        # d(lag) = head energy + tail energy - 2 * autocorrelation(lag)
        energy = np.concatenate(([0.0], np.cumsum(x * x)))
        lags = np.arange(max_lag)
        head = energy[n - lags]
        tail = energy[n] - energy[lags]

        fft_len = scipy.fft.next_fast_len(2 * n)
        spectrum = scipy.fft.rfft(x, fft_len)
        acf = scipy.fft.irfft(spectrum * np.conj(spectrum), fft_len)[:max_lag]

        return np.maximum(head + tail - 2.0 * acf, 0.0)

    def harmonic_product(self, magnitudes: np.ndarray, n_harmonics: int) -> np.ndarray:
        mags = np.asarray(magnitudes, dtype=np.float64)
        length = len(mags) // n_harmonics
        hps = mags[:length].copy()
        for h in range(2, n_harmonics + 1):
            hps *= mags[::h][:length]
        return hps


BACKENDS: Dict[str, Type[AnalysisBackend]] = {
    "cpu": CpuBackend,
}


def get_backend(name: str = "cpu") -> AnalysisBackend:
    """Instantiate a registered backend by name."""
    try:
        return BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown analysis backend: {name}. Available: {sorted(BACKENDS)}"
        ) from None
