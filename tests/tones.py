"""Synthetic signals shared by the test modules."""

from typing import List, Sequence

import numpy as np

from live_tonal.analysis import SpectrumAnalyser
from live_tonal.core import AudioFrame

SR = 44100
FFT_SIZE = 8192

# Equal-tempered frequencies around A4 = 440 Hz
C4 = 261.63
D4 = 293.66
E4 = 329.63
F4 = 349.23
G4 = 392.00
A4 = 440.00
B4 = 493.88

C_MAJOR = [C4, D4, E4, F4, G4, A4, B4]


def sine(freq: float, duration: float, sr: int = SR, amplitude: float = 0.5) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.arange(int(sr * duration)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def harmonic_tone(
    freq: float,
    duration: float,
    sr: int = SR,
    partials: Sequence[float] = (1.0, 0.6, 0.4, 0.25),
    amplitude: float = 0.5,
) -> np.ndarray:
    """Generate a tone with decaying harmonics (wind-instrument-like)."""
    t = np.arange(int(sr * duration)) / sr
    tone = sum(a * np.sin(2 * np.pi * freq * (k + 1) * t) for k, a in enumerate(partials))
    return amplitude * tone / np.max(np.abs(tone))


def silence(duration: float, sr: int = SR) -> np.ndarray:
    return np.zeros(int(sr * duration))


def melody(frequencies: List[float], note_duration: float, sr: int = SR) -> np.ndarray:
    """Concatenate harmonic tones with short fades to avoid clicks."""
    notes = []
    fade = int(0.01 * sr)
    for freq in frequencies:
        note = harmonic_tone(freq, note_duration, sr)
        note[:fade] *= np.linspace(0, 1, fade)
        note[-fade:] *= np.linspace(1, 0, fade)
        notes.append(note)
    return np.concatenate(notes)


def make_frame(signal: np.ndarray, sr: int = SR, fft_size: int = FFT_SIZE) -> AudioFrame:
    """Single unsmoothed analysis frame from the first fft_size samples."""
    window = np.zeros(fft_size)
    window[: min(fft_size, len(signal))] = signal[:fft_size]
    analyser = SpectrumAnalyser(fft_size, smoothing=0.0)
    return AudioFrame(time_domain=window, frequency_db=analyser.process(window), sample_rate=sr)
