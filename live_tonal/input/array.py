"""In-memory and file-backed frame sources for offline analysis."""

import logging
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np

from ..analysis.spectrum import SpectrumAnalyser
from ..core import AcquisitionError, AudioFrame, EngineStateError
from ..core.constants import DEFAULT_FFT_SIZE, DEFAULT_SMOOTHING, DEFAULT_SR
from .base import FrameSource

logger = logging.getLogger(__name__)


class ArraySource(FrameSource):
    """Steps through a signal by a fixed hop per read.

    The window returned by each read ends at the current position; samples
    before the start of the signal are zeros, and reads past its end see
    silence (or wrap around when `loop` is set).
    """

    def __init__(
        self,
        signal: Optional[np.ndarray] = None,
        sample_rate: int = DEFAULT_SR,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop: Optional[int] = None,
        smoothing: float = DEFAULT_SMOOTHING,
        loop: bool = False,
    ):
        """
        Initialize ArraySource.

        Args:
            signal: Mono samples in [-1, 1]
            sample_rate: Sample rate of the signal
            fft_size: Analysis window length
            hop: Samples advanced per read (default: 50 ms)
            smoothing: Spectrum smoothing time constant
            loop: Wrap around at the end of the signal
        """
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.hop = hop if hop is not None else int(round(sample_rate * 0.05))
        self.loop = loop
        self.signal = None if signal is None else self._prepare(signal)
        self._analyser = SpectrumAnalyser(fft_size, smoothing)
        self._position = 0
        self._running = False

    @staticmethod
    def _prepare(signal: np.ndarray) -> np.ndarray:
        signal = np.asarray(signal, dtype=np.float64)
        if signal.ndim != 1:
            raise ValueError(f"Expected a mono signal, got shape {signal.shape}")
        return signal

    @property
    def position(self) -> int:
        """Sample index at which the latest window ends."""
        return self._position

    @property
    def exhausted(self) -> bool:
        return not self.loop and self.signal is not None and self._position >= len(self.signal)

    @property
    def duration(self) -> float:
        if self.signal is None:
            return 0.0
        return len(self.signal) / self.sample_rate

    def start(self) -> None:
        if self.signal is None:
            raise AcquisitionError("No signal loaded")
        self._position = 0
        self._analyser.reset()
        self._running = True

    def stop(self) -> None:
        self._running = False

    def read(self) -> AudioFrame:
        if not self._running:
            raise EngineStateError(f"{self.description} is not started")

        self._position += self.hop
        window = self._window(self._position)
        return AudioFrame(
            time_domain=window,
            frequency_db=self._analyser.process(window),
            sample_rate=self.sample_rate,
        )

    def _window(self, end: int) -> np.ndarray:
        n = len(self.signal)
        if self.loop and n > 0:
            indices = np.arange(end - self.fft_size, end) % n
            return self.signal[indices]

        window = np.zeros(self.fft_size)
        start = end - self.fft_size
        lo, hi = max(start, 0), min(end, n)
        if hi > lo:
            window[lo - start:hi - start] = self.signal[lo:hi]
        return window


class FileSource(ArraySource):
    """Decodes an audio file and steps through it like an ArraySource."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".mp4"}

    def __init__(
        self,
        path: Union[str, Path],
        sample_rate: int = DEFAULT_SR,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop: Optional[int] = None,
        smoothing: float = DEFAULT_SMOOTHING,
        normalize: bool = True,
    ):
        super().__init__(None, sample_rate, fft_size, hop, smoothing)
        self.path = Path(path)
        self.normalize = normalize

    @property
    def description(self) -> str:
        return f"file {self.path.name}"

    def start(self) -> None:
        if self.signal is None:
            self.signal = self._load()
        super().start()

    def _load(self) -> np.ndarray:
        """Load, resample and downmix the file, mapping failures to AcquisitionError."""
        if not self.path.exists():
            raise AcquisitionError(f"Audio file not found: {self.path}")
        if self.path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise AcquisitionError(
                f"Unsupported format: {self.path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        try:
            audio, _ = librosa.load(str(self.path), sr=self.sample_rate, mono=True)
        except Exception as e:
            raise AcquisitionError(f"Could not decode {self.path}: {e}") from e

        if self.normalize:
            peak = np.abs(audio).max() if len(audio) else 0.0
            if peak > 0:
                audio = audio / peak

        logger.info("Loaded %s: %.2fs at %d Hz", self.path.name, len(audio) / self.sample_rate, self.sample_rate)
        return self._prepare(audio)
