"""Tests for note stabilization and debouncing."""

import pytest

from live_tonal.core import PitchEstimate, StabilizerConfig
from live_tonal.transcription import NoteStabilizer

LOUD = 0.2
TICK = 0.05


def feed(stabilizer, freq, start, ticks, confidence=0.9, level=LOUD):
    """Feed `ticks` identical estimates; return all emitted events and the last pitch."""
    events = []
    pitch = None
    for i in range(ticks):
        estimate = None if freq is None else PitchEstimate(freq, confidence)
        pitch, emitted = stabilizer.update(estimate, level, start + i * TICK)
        events.extend(emitted)
    return pitch, events


class TestNoteStabilizer:
    """Median smoothing, quantization and minimum-duration gating."""

    def test_held_a440_is_reported_as_a4(self):
        stabilizer = NoteStabilizer()
        pitch, events = feed(stabilizer, 440.0, 0.0, 5)

        assert pitch is not None
        assert pitch.pitch_class == 9
        assert pitch.octave == 4
        assert pitch.name == "A4"
        assert events == []

    def test_note_emitted_when_input_falls_silent(self):
        """A held note is recorded with its onset and duration once released."""
        stabilizer = NoteStabilizer()
        feed(stabilizer, 440.0, 0.0, 10)
        pitch, events = feed(stabilizer, None, 0.5, 1)

        assert pitch is None
        assert len(events) == 1
        event = events[0]
        assert event.pitch_class == 9
        assert event.timestamp == 0.0
        assert event.duration == pytest.approx(0.5)
        assert event.confidence == pytest.approx(0.9)
        assert event.frequency_hz == pytest.approx(440.0)

    def test_short_blip_is_dropped(self):
        """Notes shorter than the minimum duration never reach the ledger."""
        stabilizer = NoteStabilizer(StabilizerConfig(min_note_duration=0.08))
        feed(stabilizer, 440.0, 0.0, 2)
        _, events = feed(stabilizer, None, 0.07, 1)

        assert events == []

    def test_quiet_input_counts_as_silence(self):
        stabilizer = NoteStabilizer()
        feed(stabilizer, 440.0, 0.0, 4)
        pitch, events = feed(stabilizer, 440.0, 0.2, 1, level=0.001)

        assert pitch is None
        assert len(events) == 1

    def test_low_confidence_is_rejected(self):
        stabilizer = NoteStabilizer()
        pitch, events = feed(stabilizer, 440.0, 0.0, 3, confidence=0.2)

        assert pitch is None
        assert events == []
        assert stabilizer.held is None

    def test_pitch_change_closes_previous_note(self):
        """The median lags a change, then the old note is emitted exactly once."""
        stabilizer = NoteStabilizer()
        feed(stabilizer, 440.0, 0.0, 6)
        pitch, events = feed(stabilizer, 261.63, 0.3, 6)

        assert pitch.name == "C4"
        assert len(events) == 1
        assert events[0].pitch_class == 9
        assert events[0].duration > 0.3

    def test_single_outlier_is_smoothed_away(self):
        stabilizer = NoteStabilizer()
        feed(stabilizer, 440.0, 0.0, 5)
        pitch, events = feed(stabilizer, 880.0 * 1.5, 0.25, 1)

        assert pitch.name == "A4"
        assert events == []

    def test_reset_forgets_held_note(self):
        stabilizer = NoteStabilizer()
        feed(stabilizer, 440.0, 0.0, 5)
        stabilizer.reset()
        _, events = feed(stabilizer, None, 0.5, 1)

        assert events == []

    def test_custom_reference_pitch(self):
        """With A4 = 432 Hz, 432 Hz is an in-tune A."""
        stabilizer = NoteStabilizer(StabilizerConfig(reference_hz=432.0))
        pitch, _ = feed(stabilizer, 432.0, 0.0, 1)

        assert pitch.name == "A4"
