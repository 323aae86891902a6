"""Tests for single-frame pitch estimation."""

import numpy as np
import pytest

from live_tonal.analysis import CpuBackend, PitchEstimator, get_backend
from live_tonal.analysis.pitch import cumulative_mean_normalized_difference, parabolic_offset
from live_tonal.core import PitchConfig, PitchEstimate

from tones import SR, harmonic_tone, make_frame, silence, sine


class TestPitchEstimator:
    """End-to-end estimates on synthetic frames."""

    @pytest.fixture
    def estimator(self):
        return PitchEstimator()

    def test_a440_sine(self, estimator):
        """A pure 440 Hz sine should be estimated within 1%."""
        estimate = estimator.estimate(make_frame(sine(440.0, 0.5)))

        assert estimate is not None
        assert estimate.frequency_hz == pytest.approx(440.0, rel=0.01)
        assert 0.0 <= estimate.confidence <= 1.0

    @pytest.mark.parametrize("freq", [110.0, 220.0, 329.63, 784.0])
    def test_harmonic_tones(self, estimator, freq):
        """Harmonic-rich tones resolve to their fundamental, not an overtone."""
        estimate = estimator.estimate(make_frame(harmonic_tone(freq, 0.5)))

        assert estimate is not None
        assert estimate.frequency_hz == pytest.approx(freq, rel=0.02)

    def test_silence_has_no_pitch(self, estimator):
        """An all-zero frame yields no estimate at all."""
        assert estimator.estimate(make_frame(silence(0.5))) is None

    def test_time_domain_detector_alone(self, estimator):
        estimate = estimator.detect_time_domain(sine(440.0, 0.5)[:8192], SR)

        assert estimate is not None
        assert estimate.frequency_hz == pytest.approx(440.0, rel=0.01)
        assert estimate.confidence > 0.8

    def test_frequency_domain_detector_alone(self, estimator):
        frame = make_frame(harmonic_tone(440.0, 0.5))
        estimate = estimator.detect_frequency_domain(frame.frequency_db, SR)

        assert estimate is not None
        assert estimate.frequency_hz == pytest.approx(440.0, rel=0.01)

    def test_frequency_domain_needs_harmonics(self, estimator):
        """A pure sine has no overtones, so its harmonic product stays under the floor."""
        frame = make_frame(sine(440.0, 0.5))

        assert estimator.detect_frequency_domain(frame.frequency_db, SR) is None

    def test_time_domain_rejects_noise(self, estimator):
        """White noise has no periodicity dip below the reject threshold."""
        rng = np.random.default_rng(0)
        noise = rng.standard_normal(8192) * 0.3

        assert estimator.detect_time_domain(noise, SR) is None


class TestReconcile:
    """Merging rules between the two detectors."""

    @pytest.fixture
    def estimator(self):
        return PitchEstimator()

    def test_agreement_uses_hps_frequency_and_mean_confidence(self, estimator):
        td = PitchEstimate(frequency_hz=438.0, confidence=0.9)
        fd = PitchEstimate(frequency_hz=441.0, confidence=0.5)

        merged = estimator.reconcile(td, fd)

        assert merged.frequency_hz == 441.0
        assert merged.confidence == pytest.approx(0.7)

    def test_confident_lower_time_domain_wins(self, estimator):
        """Guards against HPS octave errors."""
        td = PitchEstimate(frequency_hz=220.0, confidence=0.6)
        fd = PitchEstimate(frequency_hz=440.0, confidence=0.95)

        assert estimator.reconcile(td, fd) is td

    def test_weak_lower_time_domain_loses_to_more_confident_hps(self, estimator):
        td = PitchEstimate(frequency_hz=220.0, confidence=0.3)
        fd = PitchEstimate(frequency_hz=440.0, confidence=0.95)

        assert estimator.reconcile(td, fd) is fd

    def test_higher_time_domain_wins_only_on_confidence(self, estimator):
        td = PitchEstimate(frequency_hz=880.0, confidence=0.9)
        fd = PitchEstimate(frequency_hz=440.0, confidence=0.5)

        assert estimator.reconcile(td, fd) is td

    def test_single_detector_passes_through(self, estimator):
        td = PitchEstimate(frequency_hz=300.0, confidence=0.7)

        assert estimator.reconcile(td, None) is td
        assert estimator.reconcile(None, td) is td
        assert estimator.reconcile(None, None) is None

    def test_preference_threshold_is_configurable(self):
        estimator = PitchEstimator(PitchConfig(time_domain_preference=0.8))
        td = PitchEstimate(frequency_hz=220.0, confidence=0.6)
        fd = PitchEstimate(frequency_hz=440.0, confidence=0.95)

        assert estimator.reconcile(td, fd) is fd


class TestKernels:
    """Numerical building blocks."""

    def test_cmndf_of_silence_is_all_ones(self):
        cmndf = cumulative_mean_normalized_difference(np.zeros(64))

        assert np.all(cmndf == 1.0)

    def test_cmndf_starts_at_one(self):
        differences = np.array([0.0, 4.0, 2.0, 0.5])
        cmndf = cumulative_mean_normalized_difference(differences)

        assert cmndf[0] == 1.0
        assert cmndf[1] == pytest.approx(1.0)
        assert cmndf[2] == pytest.approx(2.0 * 2 / 6.0)

    def test_parabolic_offset(self):
        assert parabolic_offset(1.0, 0.0, 1.0) == 0.0
        assert parabolic_offset(1.0, 1.0, 1.0) == 0.0
        assert parabolic_offset(2.0, 0.0, 1.0) > 0

    def test_difference_function_matches_direct_sum(self):
        rng = np.random.default_rng(1)
        x = rng.standard_normal(256)
        fast = CpuBackend().difference_function(x, 32)
        direct = np.array([np.sum((x[: len(x) - lag] - x[lag:]) ** 2) for lag in range(32)])

        np.testing.assert_allclose(fast, direct, atol=1e-8)

    def test_difference_function_rejects_long_lag(self):
        with pytest.raises(ValueError):
            CpuBackend().difference_function(np.zeros(16), 17)

    def test_harmonic_product_length(self):
        hps = CpuBackend().harmonic_product(np.ones(100), 4)

        assert len(hps) == 25

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown analysis backend"):
            get_backend("gpu")

    def test_cpu_backend_is_not_accelerated(self):
        assert get_backend("cpu").accelerated is False
