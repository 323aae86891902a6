"""Per-tick data carried between the frame source and the analyzers."""

from dataclasses import dataclass

import numpy as np

from .errors import FrameContractError


@dataclass
class AudioFrame:
    """One analysis window pulled from a frame source.

    Attributes:
        time_domain: N samples, amplitude in [-1, 1]
        frequency_db: N/2 magnitude bins in dB
        sample_rate: Sample rate in Hz
    """

    time_domain: np.ndarray
    frequency_db: np.ndarray
    sample_rate: int

    @property
    def size(self) -> int:
        return len(self.time_domain)

    def validate(self, fft_size: int, sample_rate: int) -> None:
        """Raise FrameContractError unless the frame matches the configured analysis size."""
        if self.time_domain.ndim != 1 or len(self.time_domain) != fft_size:
            raise FrameContractError(
                f"Time-domain window has {self.time_domain.shape} samples, expected ({fft_size},)"
            )
        if self.frequency_db.ndim != 1 or len(self.frequency_db) != fft_size // 2:
            raise FrameContractError(
                f"Frequency window has {self.frequency_db.shape} bins, expected ({fft_size // 2},)"
            )
        if self.sample_rate != sample_rate:
            raise FrameContractError(
                f"Frame sample rate {self.sample_rate} Hz, expected {sample_rate} Hz"
            )


@dataclass(frozen=True)
class PitchEstimate:
    """A single-frame fundamental frequency estimate."""

    frequency_hz: float
    confidence: float  # 0.0 - 1.0
