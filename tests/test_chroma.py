"""Tests for chroma extraction."""

import numpy as np
import pytest

from live_tonal.analysis import ChromaExtractor
from live_tonal.core import ChromaConfig

from tones import SR, harmonic_tone, make_frame, silence, sine


class TestChromaExtractor:
    """Pitch-class folding of the magnitude spectrum."""

    @pytest.fixture
    def extractor(self):
        return ChromaExtractor()

    def test_silence_is_near_zero(self, extractor):
        chroma = extractor.extract(make_frame(silence(0.5)))

        assert chroma.shape == (12,)
        assert chroma.max() < 1e-3

    def test_a440_peaks_at_a(self, extractor):
        chroma = extractor.extract(make_frame(sine(440.0, 0.5)))

        assert int(np.argmax(chroma)) == 9
        assert chroma[9] == pytest.approx(1.0)

    def test_values_are_normalized(self, extractor):
        chroma = extractor.extract(make_frame(harmonic_tone(196.0, 0.5)))

        assert np.all(chroma >= 0.0)
        assert chroma.max() == pytest.approx(1.0)
        # G fundamental and its octave/fifth partials dominate
        assert int(np.argmax(chroma)) in (7, 2)

    def test_reference_tuning(self):
        """A 432 Hz tone is an A when the reference is 432 Hz."""
        extractor = ChromaExtractor(ChromaConfig(reference_hz=432.0))
        chroma = extractor.extract(make_frame(sine(432.0, 0.5)))

        assert int(np.argmax(chroma)) == 9

    def test_extract_from_db_matches_frame(self, extractor):
        frame = make_frame(sine(329.63, 0.5))

        np.testing.assert_allclose(
            extractor.extract(frame),
            extractor.extract_from_db(frame.frequency_db, SR),
        )
