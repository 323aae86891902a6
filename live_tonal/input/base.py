"""Frame source contract."""

from abc import ABC, abstractmethod

from ..core import AudioFrame


class FrameSource(ABC):
    """Abstract base class for live or simulated audio input.

    A source holds the newest audio and hands it out on demand; `read()`
    never blocks. A slow producer yields a repeated frame rather than
    stalling the caller.
    """

    sample_rate: int
    fft_size: int

    @abstractmethod
    def start(self) -> None:
        """
        Acquire the underlying resource.

        Raises:
            AcquisitionError: If the source cannot be opened
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the underlying resource. Safe to call more than once."""
        pass

    @abstractmethod
    def read(self) -> AudioFrame:
        """
        Return the newest analysis window.

        Returns:
            AudioFrame with fft_size samples and fft_size // 2 dB bins
        """
        pass

    @property
    def description(self) -> str:
        return type(self).__name__
