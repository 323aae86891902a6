"""Analysis layer - Frame-level signal analysis.

This layer turns one audio frame into low-level observations:
- Analyser-style magnitude spectrum and input level
- Fundamental frequency (difference function + harmonic product spectrum)
- Chroma (pitch-class energy)
"""

from .spectrum import SpectrumAnalyser, rms, amplitude_to_db, db_to_amplitude, bin_hz
from .backends import AnalysisBackend, CpuBackend, BACKENDS, get_backend
from .pitch import PitchEstimator
from .chroma import ChromaExtractor

__all__ = [
    "SpectrumAnalyser",
    "rms",
    "amplitude_to_db",
    "db_to_amplitude",
    "bin_hz",
    "AnalysisBackend",
    "CpuBackend",
    "BACKENDS",
    "get_backend",
    "PitchEstimator",
    "ChromaExtractor",
]
