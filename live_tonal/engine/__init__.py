"""Engine layer - Tick scheduling, rolling state and snapshot broadcast.

Owns every analyzer and all rolling state for one listening session:
- Fixed-interval ticks that skip, never queue, when overrunning
- Reset on start, cleanup on stop
- Snapshot delivery to subscribers
"""

from .snapshot import Snapshot
from .engine import AnalysisEngine, EngineState

__all__ = [
    "AnalysisEngine",
    "EngineState",
    "Snapshot",
]
