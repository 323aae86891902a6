"""Inference layer - Musical understanding from accumulated evidence.

This layer builds tonal understanding from the note and chroma streams:
- Note evidence ledger and per-pitch-class competence
- Key estimation (chroma correlation + dominant-tonic prior)
- Scale interpolation (ranked root/scale candidates)

Pipeline: NoteEvents -> Ledger -> [Competence, Tonic prior] -> [Key, Scales]
"""

from .ledger import NoteLedger, PitchClassStats
from .key import KeyEstimator, KeyEstimate, Mode, TonicPrior
from .scales import ScaleInterpolator, ScaleCandidate, ScaleEvidence

__all__ = [
    # Evidence
    "NoteLedger",
    "PitchClassStats",
    # Key estimation
    "KeyEstimator",
    "KeyEstimate",
    "Mode",
    "TonicPrior",
    # Scale interpolation
    "ScaleInterpolator",
    "ScaleCandidate",
    "ScaleEvidence",
]
