"""Exception hierarchy for the analysis engine."""


class LiveTonalError(Exception):
    """Base class for all engine errors."""


class AcquisitionError(LiveTonalError):
    """A frame source could not start (permission denied, device unavailable, unreadable file)."""


class FrameContractError(LiveTonalError, AssertionError):
    """A frame source delivered buffers that do not match the configured analysis size.

    This is a caller bug; the engine never recovers from it.
    """


class EngineStateError(LiveTonalError):
    """An operation was attempted in the wrong lifecycle state."""
