"""
Video Source Abstraction
========================

Live video source consumed by the capture session.

A source is acquired once per capture session and owned exclusively by
it. It exposes the current frame on demand and signals when it ends for
reasons outside the session's control (e.g. the user revoked sharing).

Components:
    - SourceConstraints: Requested capture constraints
    - VideoSource: Protocol every backend implements
    - BaseVideoSource: Shared ended/close bookkeeping for backends

Design Rules:
    - read_frame() never blocks on network
    - close() is synchronous and idempotent
    - Ended listeners fire at most once, and never after close()
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

import numpy as np


logger = logging.getLogger(__name__)


class SourceAcquisitionError(Exception):
    """Raised when a video source is unavailable or access is denied."""
    pass


class SourceTerminatedExternally(Exception):
    """Raised when reading from a source that ended outside the session's control."""
    pass


@dataclass(frozen=True)
class SourceConstraints:
    """
    Constraints requested when acquiring a display stream.

    Attributes:
        cursor: Whether the cursor should be visible in frames
        audio: Audio capture flag; must stay False
        monitor: Display index for local capture backends
    """

    cursor: bool = True
    audio: bool = False
    monitor: int = 1

    def __post_init__(self) -> None:
        if self.audio:
            raise ValueError("Audio capture is not supported")


class VideoSource(Protocol):
    """
    Protocol for live video sources.

    Implemented by:
        - DisplaySource (local monitor via mss)
        - RemoteStreamSource (WebSocket screen-share relay)
    """

    @property
    def ended(self) -> bool:
        ...

    def read_frame(self) -> Optional[np.ndarray]:
        """
        Return the current frame as a BGR matrix.

        Returns:
            np.ndarray (H, W, 3) uint8, or None if no frame is available

        Raises:
            SourceTerminatedExternally: If the source has ended
        """
        ...

    def add_ended_listener(self, callback: Callable[[], None]) -> None:
        ...

    def close(self) -> None:
        ...


class BaseVideoSource:
    """
    Shared lifecycle bookkeeping for video source backends.

    Subclasses implement _read() and optionally _release(), and call
    _mark_ended() when the underlying stream goes away.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._ended: bool = False
        self._closed: bool = False
        self._listeners: List[Callable[[], None]] = []
        self._frames_read: int = 0
        self._empty_reads: int = 0

    @property
    def ended(self) -> bool:
        return self._ended or self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def add_ended_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def read_frame(self) -> Optional[np.ndarray]:
        if self.ended:
            raise SourceTerminatedExternally(f"Video source {self.name} has ended")
        image = self._read()
        if image is None:
            self._empty_reads += 1
        else:
            self._frames_read += 1
        return image

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        try:
            self._release()
        finally:
            logger.info(f"Video source {self.name} released")

    def _mark_ended(self) -> None:
        """Record that the stream ended and notify listeners once."""
        if self._ended or self._closed:
            return
        self._ended = True
        logger.warning(f"Video source {self.name} ended externally")
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            callback()

    def _read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def _release(self) -> None:
        pass

    def metrics(self) -> dict:
        """Get source metrics for observability."""
        return {
            "name": self.name,
            "ended": self.ended,
            "frames_read": self._frames_read,
            "empty_reads": self._empty_reads,
        }
