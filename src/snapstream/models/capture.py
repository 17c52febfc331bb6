"""
Capture State Models
====================

Discrete states and reason codes for the capture session.

Lifecycle:
    INITIALIZING → ACTIVE → FINISHED
    INITIALIZING → CANCELLED   (source could not be acquired)
    ACTIVE → CANCELLED         (user cancel or source ended externally)

FINISHED and CANCELLED are terminal.
"""

from enum import Enum


class SessionState(str, Enum):
    """
    Lifecycle states of a capture session.

    Attributes:
        INITIALIZING: Waiting for the video source to be granted
        ACTIVE: Source held, frames may be captured
        FINISHED: Frames handed to the caller, source released
        CANCELLED: Session aborted, source released
    """

    INITIALIZING = "INITIALIZING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.FINISHED, SessionState.CANCELLED)


class CaptureModeKind(str, Enum):
    """
    Selectable capture policies.

    Attributes:
        SINGLE: One trigger captures one frame and finishes
        LONG_MANUAL: Each trigger appends one frame
        LONG_TIMER: Frames are captured periodically while recording
    """

    SINGLE = "SINGLE"
    LONG_MANUAL = "LONG_MANUAL"
    LONG_TIMER = "LONG_TIMER"


class CancelReason(str, Enum):
    """
    Why a session ended in CANCELLED.

    Attributes:
        USER: Caller invoked cancel(); frames discarded
        ACQUISITION_FAILED: Video source was denied or unavailable
        SOURCE_ENDED: Source terminated outside the session's control;
            frames captured so far are handed to the cancel callback
    """

    USER = "USER"
    ACQUISITION_FAILED = "ACQUISITION_FAILED"
    SOURCE_ENDED = "SOURCE_ENDED"
