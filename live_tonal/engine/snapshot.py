"""Per-tick analysis snapshot broadcast to subscribers."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..inference import KeyEstimate, ScaleCandidate


@dataclass(frozen=True)
class Snapshot:
    """Everything the engine knows after one tick."""

    is_listening: bool = False
    current_note: Optional[str] = None  # e.g. "A4"
    current_note_frequency_hz: Optional[float] = None
    detected_key: Optional[KeyEstimate] = None
    key_confidence: float = 0.0
    chroma_vector: Tuple[float, ...] = (0.0,) * 12
    input_level: float = 0.0  # RMS, 0-1
    key_histogram: Dict[str, int] = field(default_factory=dict)
    pitch_class_counts: Dict[str, int] = field(default_factory=dict)
    pitch_class_competence: Dict[str, float] = field(default_factory=dict)
    recent_notes: Tuple[str, ...] = ()
    scale_candidates: Tuple[ScaleCandidate, ...] = ()
    total_notes_observed: int = 0
    acceleration_available: bool = False

    @classmethod
    def idle(cls) -> "Snapshot":
        """The terminal snapshot emitted when the engine stops."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        key = self.detected_key
        return {
            "is_listening": self.is_listening,
            "current_note": self.current_note,
            "current_note_frequency_hz": self.current_note_frequency_hz,
            "detected_key": None if key is None or key.tonic is None else {
                "root": key.root,
                "mode": key.mode.value,
                "confidence": key.confidence,
                "relative_key": key.relative_key,
            },
            "key_confidence": self.key_confidence,
            "chroma_vector": list(self.chroma_vector),
            "input_level": self.input_level,
            "key_histogram": dict(self.key_histogram),
            "pitch_class_counts": dict(self.pitch_class_counts),
            "pitch_class_competence": dict(self.pitch_class_competence),
            "recent_notes": list(self.recent_notes),
            "scale_candidates": [
                {
                    "root": c.root_name,
                    "scale": c.scale.value,
                    "confidence": c.confidence,
                    "matched": c.matched_names,
                    "missing": c.missing_names,
                    "evidence": None if c.evidence is None else {
                        "total_weight": c.evidence.total_weight,
                        "in_scale_weight": c.evidence.in_scale_weight,
                        "out_of_scale_weight": c.evidence.out_of_scale_weight,
                        "purity": c.evidence.purity,
                        "coverage": c.evidence.coverage,
                        "size_penalty": c.evidence.size_penalty,
                    },
                }
                for c in self.scale_candidates
            ],
            "total_notes_observed": self.total_notes_observed,
            "acceleration_available": self.acceleration_available,
        }
