"""Global constants for live tonal analysis."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Tuning reference (A4)
REFERENCE_HZ = 440.0
REFERENCE_PITCH_CLASS = 9
REFERENCE_OCTAVE = 4

# Audio processing defaults
DEFAULT_SR = 44100
DEFAULT_FFT_SIZE = 8192
DEFAULT_TICK_INTERVAL = 0.05  # seconds
DEFAULT_SMOOTHING = 0.6

# Rolling state defaults
DEFAULT_LEDGER_CAPACITY = 100
DEFAULT_CHROMA_HISTORY = 30
DEFAULT_RECENT_NOTES = 20

# Analyser dB floor (finite stand-in for silence)
MIN_DB = -200.0
