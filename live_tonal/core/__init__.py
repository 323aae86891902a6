"""Core types and constants for live tonal analysis."""

from .constants import PITCH_NAMES, REFERENCE_HZ, DEFAULT_SR, DEFAULT_FFT_SIZE
from .note import (
    NoteEvent,
    frequency_to_pitch,
    note_name,
    pitch_class_name,
)
from .frame import AudioFrame, PitchEstimate
from .scales import ScaleType, ScaleTemplate, ScaleCatalog, SCALE_CATALOG
from .config import (
    EngineConfig,
    PitchConfig,
    StabilizerConfig,
    ChromaConfig,
    KeyConfig,
    ScaleConfig,
)
from .errors import (
    LiveTonalError,
    AcquisitionError,
    FrameContractError,
    EngineStateError,
)

__all__ = [
    "PITCH_NAMES",
    "REFERENCE_HZ",
    "DEFAULT_SR",
    "DEFAULT_FFT_SIZE",
    "NoteEvent",
    "frequency_to_pitch",
    "note_name",
    "pitch_class_name",
    "AudioFrame",
    "PitchEstimate",
    "ScaleType",
    "ScaleTemplate",
    "ScaleCatalog",
    "SCALE_CATALOG",
    "EngineConfig",
    "PitchConfig",
    "StabilizerConfig",
    "ChromaConfig",
    "KeyConfig",
    "ScaleConfig",
    "LiveTonalError",
    "AcquisitionError",
    "FrameContractError",
    "EngineStateError",
]
