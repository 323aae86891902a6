"""Scale templates - the shared, ID-indexed catalog of scale definitions.

The catalog is consumed by reference; analyzers never copy or re-declare
interval lists.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple


class ScaleType(Enum):
    """Registered scale identifiers (value is the display name)."""
    MAJOR = "Major"
    MINOR = "Minor"
    HARMONIC_MINOR = "Harmonic Minor"
    MELODIC_MINOR = "Melodic Minor"
    PENTATONIC_MAJOR = "Pentatonic Major"
    PENTATONIC_MINOR = "Pentatonic Minor"
    BLUES = "Blues"
    DORIAN = "Dorian"
    PHRYGIAN = "Phrygian"
    LYDIAN = "Lydian"
    MIXOLYDIAN = "Mixolydian"
    LOCRIAN = "Locrian"
    WHOLE_TONE = "Whole Tone"
    HIJAZ = "Hijaz (Phrygian Dominant)"
    HIRAJOSHI = "Hirajoshi (Japanese)"
    IN_SEN = "In Sen (Japanese)"
    GYPSY_MINOR = "Gypsy Minor"
    ARABIAN = "Arabian (Double Harmonic)"
    PERSIAN = "Persian"
    EGYPTIAN = "Egyptian"
    CHROMATIC = "Chromatic"
    BEBOP = "Bebop Dominant"
    BEBOP_MAJOR = "Bebop Major"
    DIMINISHED = "Diminished (Whole-Half)"
    DIMINISHED_HALF_WHOLE = "Diminished (Half-Whole)"
    AUGMENTED = "Augmented"
    DOUBLE_HARMONIC = "Double Harmonic (Byzantine)"
    NEAPOLITAN = "Neapolitan Minor"
    NEAPOLITAN_MAJOR = "Neapolitan Major"
    HUNGARIAN = "Hungarian Minor"
    FLAMENCO = "Flamenco"
    BALINESE = "Balinese (Pelog)"
    CHINESE = "Chinese"
    PROMETHEUS = "Prometheus"
    SUPER_LOCRIAN = "Super Locrian (Altered)"
    LYDIAN_DOMINANT = "Lydian Dominant"


@dataclass(frozen=True)
class ScaleTemplate:
    """An ordered set of semitone offsets from a root."""

    id: ScaleType
    intervals: Tuple[int, ...]

    MIN_SIZE = 4
    MAX_SIZE = 12

    def __post_init__(self):
        if not self.MIN_SIZE <= len(self.intervals) <= self.MAX_SIZE:
            raise ValueError(
                f"{self.id.name}: scale must have {self.MIN_SIZE}-{self.MAX_SIZE} degrees, "
                f"got {len(self.intervals)}"
            )
        if self.intervals[0] != 0:
            raise ValueError(f"{self.id.name}: first interval must be the root (0)")
        if any(b <= a for a, b in zip(self.intervals, self.intervals[1:])):
            raise ValueError(f"{self.id.name}: intervals must be strictly ascending")
        if self.intervals[-1] > 11:
            raise ValueError(f"{self.id.name}: intervals must lie within one octave")

    @property
    def name(self) -> str:
        return self.id.value

    @property
    def size(self) -> int:
        return len(self.intervals)

    def pitch_classes(self, root: int) -> FrozenSet[int]:
        """Absolute pitch classes of this scale built on `root`."""
        return frozenset((root + interval) % 12 for interval in self.intervals)


class ScaleCatalog:
    """Read-only registry of scale templates, indexed by ScaleType."""

    def __init__(self, templates: Iterable[ScaleTemplate]):
        self._templates: Dict[ScaleType, ScaleTemplate] = {}
        for template in templates:
            if template.id in self._templates:
                raise ValueError(f"Duplicate scale template: {template.id.name}")
            self._templates[template.id] = template

    def __getitem__(self, scale_id: ScaleType) -> ScaleTemplate:
        return self._templates[scale_id]

    def __iter__(self) -> Iterator[ScaleTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, scale_id: object) -> bool:
        return scale_id in self._templates

    def get(self, scale_id: ScaleType) -> Optional[ScaleTemplate]:
        return self._templates.get(scale_id)

    def subset(self, scale_ids: Iterable[ScaleType]) -> "ScaleCatalog":
        """A catalog restricted to the given ids (templates are shared, not copied)."""
        return ScaleCatalog(self._templates[scale_id] for scale_id in scale_ids)


_INTERVALS = {
    ScaleType.MAJOR: (0, 2, 4, 5, 7, 9, 11),
    ScaleType.MINOR: (0, 2, 3, 5, 7, 8, 10),
    ScaleType.HARMONIC_MINOR: (0, 2, 3, 5, 7, 8, 11),
    ScaleType.MELODIC_MINOR: (0, 2, 3, 5, 7, 9, 11),
    ScaleType.PENTATONIC_MAJOR: (0, 2, 4, 7, 9),
    ScaleType.PENTATONIC_MINOR: (0, 3, 5, 7, 10),
    ScaleType.BLUES: (0, 3, 5, 6, 7, 10),
    ScaleType.DORIAN: (0, 2, 3, 5, 7, 9, 10),
    ScaleType.PHRYGIAN: (0, 1, 3, 5, 7, 8, 10),
    ScaleType.LYDIAN: (0, 2, 4, 6, 7, 9, 11),
    ScaleType.MIXOLYDIAN: (0, 2, 4, 5, 7, 9, 10),
    ScaleType.LOCRIAN: (0, 1, 3, 5, 6, 8, 10),
    ScaleType.WHOLE_TONE: (0, 2, 4, 6, 8, 10),
    ScaleType.HIJAZ: (0, 1, 4, 5, 7, 8, 10),
    ScaleType.HIRAJOSHI: (0, 2, 3, 7, 8),
    ScaleType.IN_SEN: (0, 1, 5, 7, 10),
    ScaleType.GYPSY_MINOR: (0, 2, 3, 6, 7, 8, 11),
    ScaleType.ARABIAN: (0, 1, 4, 5, 7, 8, 11),
    ScaleType.PERSIAN: (0, 1, 4, 5, 6, 8, 11),
    ScaleType.EGYPTIAN: (0, 2, 5, 7, 10),
    ScaleType.CHROMATIC: tuple(range(12)),
    # Jazz
    ScaleType.BEBOP: (0, 2, 4, 5, 7, 9, 10, 11),
    ScaleType.BEBOP_MAJOR: (0, 2, 4, 5, 7, 8, 9, 11),
    # Symmetric
    ScaleType.DIMINISHED: (0, 2, 3, 5, 6, 8, 9, 11),
    ScaleType.DIMINISHED_HALF_WHOLE: (0, 1, 3, 4, 6, 7, 9, 10),
    ScaleType.AUGMENTED: (0, 3, 4, 7, 8, 11),
    # European classical
    ScaleType.DOUBLE_HARMONIC: (0, 1, 4, 5, 7, 8, 11),
    ScaleType.NEAPOLITAN: (0, 1, 3, 5, 7, 8, 11),
    ScaleType.NEAPOLITAN_MAJOR: (0, 1, 3, 5, 7, 9, 11),
    ScaleType.HUNGARIAN: (0, 2, 3, 6, 7, 8, 11),
    ScaleType.FLAMENCO: (0, 1, 4, 5, 7, 8, 10),
    # Asian
    ScaleType.BALINESE: (0, 1, 3, 7, 8),
    ScaleType.CHINESE: (0, 4, 6, 7, 11),
    # Modern jazz
    ScaleType.PROMETHEUS: (0, 2, 4, 6, 9, 10),
    ScaleType.SUPER_LOCRIAN: (0, 1, 3, 4, 6, 8, 10),
    ScaleType.LYDIAN_DOMINANT: (0, 2, 4, 6, 7, 9, 10),
}

SCALE_CATALOG = ScaleCatalog(
    ScaleTemplate(scale_id, intervals) for scale_id, intervals in _INTERVALS.items()
)
