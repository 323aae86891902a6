"""Tests for streaming key estimation."""

import numpy as np
import pytest

from live_tonal.core import KeyConfig, NoteEvent
from live_tonal.inference import KeyEstimate, KeyEstimator, Mode, NoteLedger

C_DIATONIC = np.array([1, 0, 1, 0, 1, 1, 0, 1, 0, 1, 0, 1], dtype=float)


def estimator_with(chroma, times=3, config=None):
    estimator = KeyEstimator(config)
    for _ in range(times):
        estimator.push(chroma)
    return estimator


class TestKeyEstimator:
    """Profile correlation, thresholds and the tonic prior."""

    def test_too_little_history(self):
        """Fewer than three chroma vectors never yields a key."""
        estimate = estimator_with(C_DIATONIC, times=2).estimate()

        assert estimate.tonic is None
        assert estimate.confidence == 0.0

    def test_flat_chroma_has_no_key(self):
        estimate = estimator_with(np.full(12, 0.5)).estimate()

        assert estimate == KeyEstimate.none()

    def test_c_diatonic_is_c_major(self):
        estimate = estimator_with(C_DIATONIC).estimate()

        assert estimate.root == "C"
        assert estimate.mode is Mode.MAJOR
        assert estimate.name == "C major"
        assert 0.0 < estimate.confidence <= 1.0
        assert estimate.prior_strength == 0.0

    def test_transposed_profile(self):
        """Rotating the chroma rotates the detected tonic."""
        estimate = estimator_with(np.roll(C_DIATONIC, 7)).estimate()

        assert estimate.name == "G major"

    def test_profile_correlates_perfectly_with_itself(self):
        estimator = KeyEstimator()
        correlations = estimator.correlations(np.roll(KeyEstimator.KRUMHANSL_MINOR, 9))

        assert correlations.shape == (12, 2)
        assert correlations[9, 1] == pytest.approx(1.0)
        assert np.all(correlations <= 1.0 + 1e-9)

    def test_tonic_prior_selects_relative_minor(self):
        """Held A notes tip a C-diatonic chroma towards A minor."""
        ledger = NoteLedger()
        ledger.extend(
            NoteEvent(pitch_class=9, timestamp=t, duration=0.8, confidence=0.9)
            for t in (0.0, 1.0, 2.0, 3.0)
        )
        estimator = estimator_with(C_DIATONIC)

        estimate = estimator.estimate(ledger, ledger.competence(), now=4.0)

        assert estimate.name == "A minor"
        assert estimate.prior_strength == pytest.approx(1.0)
        assert 0.0 <= estimate.confidence <= 1.0

    def test_old_notes_fall_outside_prior_window(self):
        ledger = NoteLedger()
        ledger.append(NoteEvent(pitch_class=9, timestamp=0.0, duration=0.8, confidence=0.9))
        estimator = estimator_with(C_DIATONIC)

        prior = estimator.tonic_prior(ledger, ledger.competence(), now=60.0)

        assert prior.pitch_class is None
        assert prior.strength == 0.0

    def test_spread_prior_is_rejected(self):
        """No dominant tonic when every class has an equal share."""
        ledger = NoteLedger()
        ledger.extend(
            NoteEvent(pitch_class=pc, timestamp=1.0, duration=0.5, confidence=0.9) for pc in range(12)
        )

        prior = KeyEstimator().tonic_prior(ledger, ledger.competence(), now=2.0)

        assert prior.pitch_class is None

    def test_history_is_bounded(self):
        estimator = estimator_with(C_DIATONIC, times=50, config=KeyConfig(history_size=30))

        assert len(estimator) == 30

    def test_reset(self):
        estimator = estimator_with(C_DIATONIC)
        estimator.reset()

        assert len(estimator) == 0
        assert estimator.estimate().tonic is None

    def test_push_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            KeyEstimator().push(np.ones(11))

    def test_relative_and_parallel_keys(self):
        estimate = KeyEstimate(tonic=0, mode=Mode.MAJOR, confidence=0.8)

        assert estimate.relative_key == "A minor"
        assert estimate.parallel_key == "C minor"
        assert KeyEstimate(tonic=9, mode=Mode.MINOR).relative_key == "C major"
