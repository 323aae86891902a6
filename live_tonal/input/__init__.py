"""Input layer - Frame sources.

Sources hold the newest audio and hand out fixed-size analysis windows:
- ArraySource: in-memory signal stepped by a fixed hop
- FileSource: decoded audio file (librosa)
- MicrophoneSource: live capture (sounddevice)
"""

from .base import FrameSource
from .array import ArraySource, FileSource
from .microphone import MicrophoneSource

__all__ = [
    "FrameSource",
    "ArraySource",
    "FileSource",
    "MicrophoneSource",
]
