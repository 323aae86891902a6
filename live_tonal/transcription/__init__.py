"""Transcription layer - Frame estimates to discrete note events.

Converts the per-tick pitch stream into debounced, held notes:
- Median smoothing over a short estimate history
- Nearest-semitone quantization against the tuning reference
- Minimum-duration gating
"""

from .stabilizer import NoteStabilizer, StablePitch

__all__ = [
    "NoteStabilizer",
    "StablePitch",
]
