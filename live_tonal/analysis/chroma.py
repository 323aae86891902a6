"""Chroma extraction - fold a magnitude spectrum into 12 pitch classes."""

from typing import Dict, Optional, Tuple

import librosa
import numpy as np

from ..core import AudioFrame, ChromaConfig
from .spectrum import bin_hz, db_to_amplitude


class ChromaExtractor:
    """Accumulates linear magnitude per nearest pitch class within a musical band."""

    def __init__(self, config: Optional[ChromaConfig] = None):
        self.config = config or ChromaConfig()
        self._bin_maps: Dict[Tuple[int, int], Tuple[np.ndarray, np.ndarray]] = {}

    def _bin_map(self, bin_count: int, sample_rate: int) -> Tuple[np.ndarray, np.ndarray]:
        """Bins inside the band and the pitch class of each (cached per frame geometry)."""
        key = (bin_count, sample_rate)
        if key not in self._bin_maps:
            cfg = self.config
            bin_width = bin_hz(sample_rate, bin_count)
            min_bin = max(1, int(cfg.fmin // bin_width))
            max_bin = min(int(cfg.fmax // bin_width), bin_count - 1)
            bins = np.arange(min_bin, max_bin + 1)

            # Retune so the reference pitch lands on MIDI 69
            midi = librosa.hz_to_midi(bins * bin_width * (440.0 / cfg.reference_hz))
            pitch_classes = np.round(midi).astype(int) % 12
            self._bin_maps[key] = (bins, pitch_classes)
        return self._bin_maps[key]

    def extract(self, frame: AudioFrame) -> np.ndarray:
        """
        Compute the chroma vector of one frame.

        Returns:
            12 non-negative values normalized by their maximum
        """
        return self.extract_from_db(frame.frequency_db, frame.sample_rate)

    def extract_from_db(self, frequency_db: np.ndarray, sample_rate: int) -> np.ndarray:
        bins, pitch_classes = self._bin_map(len(frequency_db), sample_rate)
        if bins.size == 0:
            return np.zeros(12)

        magnitudes = db_to_amplitude(np.asarray(frequency_db)[bins])
        chroma = np.bincount(pitch_classes, weights=magnitudes, minlength=12)
        return chroma / max(float(chroma.max()), self.config.epsilon)
