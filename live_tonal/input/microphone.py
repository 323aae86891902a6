"""Live microphone capture via sounddevice."""

import logging
import threading
from typing import Optional, Union

import numpy as np

from ..analysis.spectrum import SpectrumAnalyser
from ..core import AcquisitionError, AudioFrame, EngineStateError
from ..core.constants import DEFAULT_FFT_SIZE, DEFAULT_SMOOTHING, DEFAULT_SR
from .base import FrameSource

logger = logging.getLogger(__name__)


class MicrophoneSource(FrameSource):
    """Keeps the newest fft_size samples from an input device.

    The PortAudio callback pushes blocks into a ring; `read()` copies the
    ring without waiting for new audio.
    """

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        sample_rate: int = DEFAULT_SR,
        fft_size: int = DEFAULT_FFT_SIZE,
        blocksize: int = 1024,
        smoothing: float = DEFAULT_SMOOTHING,
    ):
        """
        Initialize MicrophoneSource.

        Args:
            device: sounddevice input device id or name (None = system default)
            sample_rate: Capture sample rate in Hz
            fft_size: Analysis window length
            blocksize: Frames per PortAudio callback
            smoothing: Spectrum smoothing time constant
        """
        self.device = device
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.blocksize = blocksize
        self._analyser = SpectrumAnalyser(fft_size, smoothing)
        self._ring = np.zeros(fft_size)
        self._lock = threading.Lock()
        self._stream = None
        self.overflows = 0

    @property
    def description(self) -> str:
        device = "default device" if self.device is None else f"device {self.device}"
        return f"microphone ({device}, {self.sample_rate} Hz)"

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        if self._stream is not None:
            return

        try:
            import sounddevice as sd

            stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.blocksize,
                dtype="float32",
                callback=self._callback,
            )
        except Exception as e:
            raise AcquisitionError(f"Could not open {self.description}: {e}") from e

        try:
            stream.start()
        except Exception as e:
            stream.close()
            raise AcquisitionError(f"Could not start {self.description}: {e}") from e

        with self._lock:
            self._ring[:] = 0.0
        self._analyser.reset()
        self._stream = stream
        logger.info("Capturing from %s", self.description)

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
            logger.info("Stopped capture from %s", self.description)

    def _callback(self, indata, frames, time_info, status) -> None:
        if status.input_overflow:
            self.overflows += 1
        block = indata[:, 0]
        with self._lock:
            if len(block) >= self.fft_size:
                self._ring[:] = block[-self.fft_size:]
            else:
                self._ring = np.roll(self._ring, -len(block))
                self._ring[-len(block):] = block

    def read(self) -> AudioFrame:
        if self._stream is None:
            raise EngineStateError(f"{self.description} is not started")
        with self._lock:
            window = self._ring.copy()
        return AudioFrame(
            time_domain=window,
            frequency_db=self._analyser.process(window),
            sample_rate=self.sample_rate,
        )
