"""Live Tonal - Real-time pitch, key and scale analysis of a monophonic stream.

Architecture Layers:
    1. core/          - Shared types, configuration, scale catalog, errors
    2. input/         - Frame sources (microphone, file, in-memory signal)
    3. analysis/      - Frame-level signal analysis (spectrum, pitch, chroma)
    4. transcription/ - Pitch stabilization into held note events
    5. inference/     - Musical understanding (ledger, key, scales)
    6. engine/        - Tick loop, session state and snapshot broadcast
"""

__version__ = "0.1.0"

# Core types
from .core import EngineConfig, NoteEvent, SCALE_CATALOG

# Input layer
from .input import ArraySource, FileSource, MicrophoneSource

# Analysis layer
from .analysis import PitchEstimator, ChromaExtractor

# Transcription layer
from .transcription import NoteStabilizer

# Inference layer
from .inference import NoteLedger, KeyEstimator, ScaleInterpolator

# Engine layer
from .engine import AnalysisEngine, Snapshot

__all__ = [
    # Core
    "EngineConfig",
    "NoteEvent",
    "SCALE_CATALOG",
    # Input
    "ArraySource",
    "FileSource",
    "MicrophoneSource",
    # Analysis
    "PitchEstimator",
    "ChromaExtractor",
    # Transcription
    "NoteStabilizer",
    # Inference
    "NoteLedger",
    "KeyEstimator",
    "ScaleInterpolator",
    # Engine
    "AnalysisEngine",
    "Snapshot",
]
