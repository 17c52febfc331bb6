"""
Test Helpers
============

Shared builders and fakes for the SnapStream test suite.
"""

import asyncio
import heapq
import itertools
from typing import Optional

import cv2
import numpy as np

from snapstream.capture.raster import rasterize
from snapstream.capture.source import BaseVideoSource, SourceAcquisitionError
from snapstream.frames import Frame


RED = (0, 0, 255)
GREEN = (0, 255, 0)
BLUE = (255, 0, 0)
BLACK = (0, 0, 0)


def solid_image(width: int, height: int, color=RED) -> np.ndarray:
    """BGR matrix filled with one colour."""
    image = np.empty((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


def make_frame(
    width: int,
    height: int,
    color=RED,
    frame_id: Optional[str] = None,
    captured_at: float = 0.0,
) -> Frame:
    """PNG frame of a solid colour."""
    return rasterize(
        solid_image(width, height, color),
        clock=lambda: captured_at,
        frame_id=frame_id,
    )


def decode_png(data: bytes) -> np.ndarray:
    return cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)


class FakeVideoSource(BaseVideoSource):
    """In-memory video source with a settable current image."""

    def __init__(self, image: Optional[np.ndarray] = None) -> None:
        super().__init__(name="fake")
        self.image = image if image is not None else solid_image(64, 48)
        self.release_count = 0

    def _read(self) -> Optional[np.ndarray]:
        return self.image

    def _release(self) -> None:
        self.release_count += 1

    def end(self) -> None:
        """Simulate the user revoking the share."""
        self._mark_ended()


def provider_for(source: BaseVideoSource):
    """Source provider that grants the given source."""
    async def acquire(constraints):
        acquire.constraints = constraints
        return source
    acquire.constraints = None
    return acquire


def failing_provider(message: str = "Permission denied"):
    async def acquire(constraints):
        raise SourceAcquisitionError(message)
    return acquire


class VirtualTimer:
    """
    Virtual-time replacement for asyncio.sleep.

    Sleepers only wake when advance() moves virtual time past their
    deadline, so timer-driven captures are deterministic.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._waiters = []
        self._seq = itertools.count()

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + delay, next(self._seq), future))
        await future

    async def _settle(self) -> None:
        for _ in range(5):
            await asyncio.sleep(0)

    async def advance(self, duration: float) -> None:
        await self._settle()
        target = self.now + duration
        while self._waiters and self._waiters[0][0] <= target:
            wake_at, _, future = heapq.heappop(self._waiters)
            self.now = wake_at
            if not future.done():
                future.set_result(None)
            await self._settle()
        self.now = target
        await self._settle()
