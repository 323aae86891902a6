"""Scale interpolation - rank (root, scale) pairs against weighted note evidence."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..core import PITCH_NAMES, SCALE_CATALOG, ScaleCatalog, ScaleConfig, ScaleType
from .ledger import NoteLedger, PitchClassStats


@dataclass(frozen=True)
class ScaleEvidence:
    """Breakdown of how a candidate scale was scored."""

    total_weight: float
    in_scale_weight: float
    out_of_scale_weight: float
    purity: float  # Share of evidence weight inside the scale
    coverage: float  # Share of scale degrees that were played
    size_penalty: float  # Discourages large scales from matching trivially


@dataclass(frozen=True)
class ScaleCandidate:
    """A candidate scale with its confidence and evidence."""

    root: int  # Pitch class of the scale root
    scale: ScaleType
    confidence: float
    matched: Tuple[int, ...] = field(default_factory=tuple)
    missing: Tuple[int, ...] = field(default_factory=tuple)
    evidence: Optional[ScaleEvidence] = None

    @property
    def root_name(self) -> str:
        return PITCH_NAMES[self.root]

    @property
    def name(self) -> str:
        return f"{self.root_name} {self.scale.value}"

    @property
    def matched_names(self) -> List[str]:
        return [PITCH_NAMES[pc] for pc in self.matched]

    @property
    def missing_names(self) -> List[str]:
        return [PITCH_NAMES[pc] for pc in self.missing]


class ScaleInterpolator:
    """Scores every root/template combination against the ledger's evidence.

    Per-class weight:
        count * (0.2 + 0.8 * mean confidence)
              * (0.2 + 0.8 * normalized duration)
              * (0.2 + 0.8 * competence)

    Candidate confidence:
        (purity_weight * purity + coverage_weight * coverage) * size penalty
    """

    def __init__(
        self,
        catalog: Optional[ScaleCatalog] = None,
        config: Optional[ScaleConfig] = None,
    ):
        """
        Initialize ScaleInterpolator.

        Args:
            catalog: Shared scale-template catalog (held by reference)
            config: Thresholds and weights
        """
        self.catalog = catalog if catalog is not None else SCALE_CATALOG
        self.config = config or ScaleConfig()

    def class_weights(
        self,
        stats: Dict[int, PitchClassStats],
        competence: Optional[Dict[int, float]] = None,
    ) -> Dict[int, float]:
        """Evidence weight of each observed pitch class."""
        competence = competence or {}
        if not stats:
            return {}

        max_duration = max(s.total_duration for s in stats.values())
        weights = {}
        for pitch_class, s in stats.items():
            normalized_duration = s.total_duration / max_duration if max_duration > 0 else 0.0
            weights[pitch_class] = (
                s.count
                * (0.2 + 0.8 * s.mean_confidence)
                * (0.2 + 0.8 * normalized_duration)
                * (0.2 + 0.8 * competence.get(pitch_class, 0.0))
            )
        return weights

    def interpolate(
        self,
        ledger: NoteLedger,
        competence: Optional[Dict[int, float]] = None,
        root: Optional[int] = None,
    ) -> List[ScaleCandidate]:
        """
        Rank the scales consistent with the notes in the ledger.

        Args:
            ledger: Note evidence
            competence: Per-pitch-class competence (defaults to the ledger's own)
            root: Only consider scales on this root pitch class

        Returns:
            Up to `max_candidates` candidates, highest confidence first
        """
        stats = ledger.stats()
        if competence is None:
            competence = ledger.competence(stats)
        return self.rank(self.class_weights(stats, competence), root=root)

    def rank(
        self,
        weights: Dict[int, float],
        root: Optional[int] = None,
    ) -> List[ScaleCandidate]:
        """Rank scales from precomputed per-class evidence weights."""
        cfg = self.config
        observed = frozenset(pc for pc, w in weights.items() if w > 0)
        if len(observed) < cfg.min_distinct:
            return []

        total_weight = float(sum(weights.values()))
        if total_weight <= 0:
            return []

        roots = range(12) if root is None else [root % 12]
        candidates: List[ScaleCandidate] = []

        for candidate_root in roots:
            for template in self.catalog:
                scale_set = template.pitch_classes(candidate_root)
                matched = observed & scale_set
                if len(matched) < cfg.min_matched:
                    continue

                in_scale = float(sum(weights[pc] for pc in matched))
                purity = in_scale / total_weight
                coverage = len(matched) / len(scale_set)
                size_penalty = min(1.0, cfg.reference_size / len(scale_set))
                confidence = (cfg.purity_weight * purity + cfg.coverage_weight * coverage) * size_penalty
                confidence = float(np.clip(confidence, 0.0, 1.0))
                if confidence <= cfg.min_confidence:
                    continue

                candidates.append(
                    ScaleCandidate(
                        root=candidate_root,
                        scale=template.id,
                        confidence=confidence,
                        matched=_ordered(matched, candidate_root),
                        missing=_ordered(scale_set - observed, candidate_root),
                        evidence=ScaleEvidence(
                            total_weight=total_weight,
                            in_scale_weight=in_scale,
                            out_of_scale_weight=max(0.0, total_weight - in_scale),
                            purity=purity,
                            coverage=coverage,
                            size_penalty=size_penalty,
                        ),
                    )
                )

        # Stable sort keeps root/catalog order among ties
        candidates.sort(key=lambda c: c.confidence, reverse=True)
        return candidates[: cfg.max_candidates]


def _ordered(pitch_classes, root: int) -> Tuple[int, ...]:
    """Pitch classes in ascending order starting from the root."""
    return tuple(sorted(pitch_classes, key=lambda pc: (pc - root) % 12))
