"""Analysis engine - owns all rolling state and drives one tick per interval.

Per tick:
    FrameSource -> PitchEstimator -> NoteStabilizer -> NoteLedger
    FrameSource -> ChromaExtractor -> KeyEstimator (+ ledger tonic prior)
    NoteLedger  -> ScaleInterpolator
    everything  -> Snapshot -> subscribers
"""

import logging
import threading
import time
from collections import Counter
from enum import Enum
from typing import Callable, List, Optional

from ..analysis import (
    AnalysisBackend,
    ChromaExtractor,
    PitchEstimator,
    get_backend,
    rms,
)
from ..core import (
    PITCH_NAMES,
    SCALE_CATALOG,
    AcquisitionError,
    EngineConfig,
    EngineStateError,
    NoteEvent,
    ScaleCatalog,
)
from ..inference import KeyEstimate, KeyEstimator, NoteLedger, ScaleInterpolator
from ..input import FrameSource
from ..transcription import NoteStabilizer
from .snapshot import Snapshot

logger = logging.getLogger(__name__)

Subscriber = Callable[[Snapshot], None]


class EngineState(Enum):
    """Engine lifecycle states."""
    IDLE = "idle"
    LISTENING = "listening"


class AnalysisEngine:
    """Real-time tonal analysis of a monophonic frame stream.

    Lifecycle: IDLE --start()--> LISTENING --stop()--> IDLE. Starting resets
    all rolling state; stopping clears it and emits one terminal snapshot.
    Nothing survives a stop/start cycle.
    """

    def __init__(
        self,
        source: FrameSource,
        config: Optional[EngineConfig] = None,
        catalog: Optional[ScaleCatalog] = None,
        backend: Optional[AnalysisBackend] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize AnalysisEngine.

        Args:
            source: Frame source collaborator
            config: Engine configuration
            catalog: Shared scale-template catalog
            backend: Analysis backend (default: looked up from config.backend)
            clock: Monotonic clock in seconds
        """
        self.config = config or EngineConfig()
        self.source = source
        self.catalog = catalog if catalog is not None else SCALE_CATALOG
        self.backend = backend or get_backend(self.config.backend)
        self._clock = clock

        cfg = self.config
        self.pitch_estimator = PitchEstimator(cfg.pitch, self.backend)
        self.stabilizer = NoteStabilizer(cfg.stabilizer)
        self.chroma_extractor = ChromaExtractor(cfg.chroma)
        self.ledger = NoteLedger(cfg.ledger_capacity)
        self.key_estimator = KeyEstimator(cfg.key)
        self.scale_interpolator = ScaleInterpolator(self.catalog, cfg.scales)

        self._state = EngineState.IDLE
        self._session = 0
        self._tick_lock = threading.RLock()
        self._in_tick = False
        self._subscribers: List[Subscriber] = []
        self._snapshot = Snapshot.idle()
        self._key_histogram: Counter = Counter()
        self._note_counts: Counter = Counter()
        self._total_notes = 0
        self._last_key: Optional[str] = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state is EngineState.LISTENING

    @property
    def snapshot(self) -> Snapshot:
        """The most recently emitted snapshot."""
        return self._snapshot

    @property
    def key_histogram(self) -> Counter:
        return Counter(self._key_histogram)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber; it immediately receives the current snapshot.

        Returns:
            Function that removes the subscriber (idempotent)
        """
        self._subscribers.append(subscriber)
        subscriber(self._snapshot)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _publish(self, snapshot: Snapshot) -> None:
        # A subscriber that stops or restarts the engine supersedes the rest
        # of this delivery with the new session's snapshot
        session = self._session
        self._snapshot = snapshot
        for subscriber in list(self._subscribers):
            if session != self._session:
                return
            subscriber(snapshot)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Reset all rolling state, start the frame source and begin listening.

        Raises:
            AcquisitionError: If the frame source fails; the engine stays idle
        """
        if self._state is EngineState.LISTENING:
            return

        with self._tick_lock:
            self._reset()
            try:
                self.source.start()
            except AcquisitionError as e:
                logger.warning("Could not start %s: %s", self.source.description, e)
                raise

            self._session += 1
            self._state = EngineState.LISTENING

        logger.info("Listening on %s (backend: %s)", self.source.description, self.backend.name)
        self._publish(Snapshot(is_listening=True, acceleration_available=self.backend.accelerated))

    def stop(self) -> Snapshot:
        """
        Stop listening, release the source, clear all state and emit the idle snapshot.

        Safe to call repeatedly; every call emits the same terminal snapshot.
        """
        # Invalidate any tick in flight before waiting for it
        self._session += 1
        was_listening = self._state is EngineState.LISTENING
        self._state = EngineState.IDLE

        with self._tick_lock:
            if was_listening:
                self.source.stop()
                logger.info("Stopped listening on %s", self.source.description)
            self._reset()

        snapshot = Snapshot.idle()
        self._publish(snapshot)
        return snapshot

    def _reset(self) -> None:
        self.stabilizer.reset()
        self.ledger.clear()
        self.key_estimator.reset()
        self._key_histogram.clear()
        self._note_counts.clear()
        self._total_notes = 0
        self._last_key = None

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> Optional[Snapshot]:
        """
        Run one complete analysis tick and publish its snapshot.

        Args:
            now: Timestamp in seconds (default: the engine clock)

        Returns:
            The published snapshot, or None if the tick was skipped because
            another tick was in flight or the engine stopped meanwhile

        Raises:
            EngineStateError: If the engine is idle
            FrameContractError: If the source delivers mis-sized buffers
        """
        if self._state is not EngineState.LISTENING:
            raise EngineStateError("Cannot tick while idle; call start() first")

        if self._in_tick or not self._tick_lock.acquire(blocking=False):
            logger.debug("Tick skipped: previous tick still running")
            return None
        self._in_tick = True
        try:
            session = self._session
            snapshot = self._analyze(self._clock() if now is None else now)
            if session != self._session or self._state is not EngineState.LISTENING:
                return None
            self._publish(snapshot)
            return snapshot if session == self._session else None
        finally:
            self._in_tick = False
            self._tick_lock.release()

    def _analyze(self, now: float) -> Snapshot:
        cfg = self.config
        frame = self.source.read()
        frame.validate(cfg.fft_size, cfg.sample_rate)

        level = rms(frame.time_domain)
        audible = level > cfg.stabilizer.silence_rms

        # Pitch -> held notes -> ledger
        estimate = self.pitch_estimator.estimate(frame)
        pitch, events = self.stabilizer.update(estimate, level, now)
        for event in events:
            self._record(event)

        # Chroma -> key
        chroma = self.chroma_extractor.extract(frame)
        if audible:
            self.key_estimator.push(chroma)

        stats = self.ledger.stats()
        competence = self.ledger.competence(stats)
        key = self.key_estimator.estimate(self.ledger, competence, now)
        self._count_key(key, audible)

        scales = self.scale_interpolator.rank(
            self.scale_interpolator.class_weights(stats, competence),
            root=cfg.scale_root,
        )

        return Snapshot(
            is_listening=True,
            current_note=pitch.name if pitch is not None and audible else None,
            current_note_frequency_hz=pitch.frequency_hz if pitch is not None and audible else None,
            detected_key=key if key.tonic is not None else None,
            key_confidence=key.confidence,
            chroma_vector=tuple(float(v) for v in chroma),
            input_level=min(1.0, level),
            key_histogram=dict(self._key_histogram),
            pitch_class_counts={
                PITCH_NAMES[pc]: count for pc, count in sorted(self._note_counts.items())
            },
            pitch_class_competence={
                PITCH_NAMES[pc]: value for pc, value in sorted(competence.items())
            },
            recent_notes=tuple(e.name for e in self.ledger.recent(cfg.recent_notes)),
            scale_candidates=tuple(scales),
            total_notes_observed=self._total_notes,
            acceleration_available=self.backend.accelerated,
        )

    def _record(self, event: NoteEvent) -> None:
        self.ledger.append(event)
        self._note_counts[event.pitch_class] += 1
        self._total_notes += 1

    def _count_key(self, key: KeyEstimate, audible: bool) -> None:
        if key.tonic is None:
            return
        if audible and key.confidence > self.config.key.histogram_min_confidence:
            self._key_histogram[key.name] += 1
        if key.name != self._last_key:
            logger.debug("Key now %s (confidence %.2f)", key.name, key.confidence)
            self._last_key = key.name

    # ------------------------------------------------------------------
    # Schedulers
    # ------------------------------------------------------------------

    def run(
        self,
        duration: Optional[float] = None,
        max_ticks: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """
        Tick on a fixed interval until stopped, `duration` elapses, or `max_ticks` ran.

        Ticks that would have fallen inside an overrunning tick are skipped,
        never queued. Starts the engine if it is idle.

        Returns:
            Number of ticks run
        """
        if self._state is EngineState.IDLE:
            self.start()

        interval = self.config.tick_interval
        session = self._session
        next_tick = self._clock()
        deadline = None if duration is None else next_tick + duration
        ticks = 0

        while self._state is EngineState.LISTENING and session == self._session:
            now = self._clock()
            if deadline is not None and now >= deadline:
                break
            if now < next_tick:
                sleep(next_tick - now)
                continue

            self.tick(now)
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break

            next_tick += interval
            behind = self._clock() - next_tick
            if behind > 0:
                skipped = int(behind // interval) + 1
                next_tick += skipped * interval
                logger.debug("Tick overran the interval; skipped %d tick(s)", skipped)

        return ticks

    def replay(self, ticks: int, start_time: float = 0.0) -> Snapshot:
        """
        Run `ticks` ticks back to back on a simulated clock.

        Used for offline sources, where each read advances the audio by one
        tick interval. Starts the engine if it is idle.

        Returns:
            The last published snapshot
        """
        if self._state is EngineState.IDLE:
            self.start()
        interval = self.config.tick_interval
        for i in range(ticks):
            self.tick(now=start_time + i * interval)
        return self._snapshot
