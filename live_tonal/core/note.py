"""Pitch helpers and the note event - the unit of evidence for inference."""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import PITCH_NAMES, REFERENCE_HZ, REFERENCE_OCTAVE, REFERENCE_PITCH_CLASS


def semitones_from_reference(freq: float, reference_hz: float = REFERENCE_HZ) -> int:
    """Nearest whole-semitone distance of `freq` from the reference pitch."""
    return int(round(12 * np.log2(freq / reference_hz)))


def frequency_to_pitch(freq: float, reference_hz: float = REFERENCE_HZ) -> Tuple[int, int]:
    """
    Convert a frequency to (pitch_class, octave).

    Args:
        freq: Frequency in Hz (must be positive)
        reference_hz: Frequency of A4

    Returns:
        Tuple of (pitch class 0-11 with C=0, scientific octave)
    """
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    index = semitones_from_reference(freq, reference_hz) + REFERENCE_PITCH_CLASS
    octave = (index + 12 * REFERENCE_OCTAVE) // 12
    return index % 12, octave


def pitch_class_name(pitch_class: int) -> str:
    return PITCH_NAMES[pitch_class % 12]


def note_name(pitch_class: int, octave: int) -> str:
    """Get note name (e.g., 'A4', 'C#3')."""
    return f"{pitch_class_name(pitch_class)}{octave}"


@dataclass(frozen=True)
class NoteEvent:
    """A debounced, held note as recorded in the evidence ledger."""

    pitch_class: int  # 0-11, C=0
    timestamp: float  # Onset in seconds (engine clock)
    duration: float  # Seconds the pitch class was held
    confidence: float  # Mean pitch confidence over the hold (0-1)
    octave: int = REFERENCE_OCTAVE
    frequency_hz: float = 0.0

    @property
    def end(self) -> float:
        """Time the note was released."""
        return self.timestamp + self.duration

    @property
    def name(self) -> str:
        return pitch_class_name(self.pitch_class)
