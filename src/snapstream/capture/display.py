"""
Display Source
==============

Local monitor capture using the mss library.

Each read grabs the configured monitor at its native resolution and
converts the BGRA screenshot to BGR. A failing grab means the display is
no longer available and is treated as an external end of the stream.
"""

import logging
from typing import Optional

import cv2
import mss
import mss.exception
import numpy as np

from snapstream.capture.source import (
    BaseVideoSource,
    SourceAcquisitionError,
    SourceConstraints,
)


logger = logging.getLogger(__name__)


class DisplaySource(BaseVideoSource):
    """
    Video source backed by an mss screen grabber.

    mss does not composite the cursor into screenshots, so the cursor
    constraint is recorded but cannot be honoured by this backend.

    Attributes:
        monitor_index: Index into mss monitors (0 = all monitors combined)
    """

    def __init__(self, monitor_index: int = 1, show_cursor: bool = True) -> None:
        """
        Open the screen grabber.

        Raises:
            SourceAcquisitionError: If the display cannot be opened or the
                monitor index does not exist
        """
        super().__init__(name=f"display:{monitor_index}")
        self.monitor_index = monitor_index
        self.show_cursor = show_cursor

        try:
            self._sct = mss.mss()
        except mss.exception.ScreenShotError as e:
            raise SourceAcquisitionError(f"Cannot open display: {e}") from e

        monitors = self._sct.monitors
        if monitor_index >= len(monitors):
            self._sct.close()
            raise SourceAcquisitionError(
                f"Monitor {monitor_index} not found ({len(monitors) - 1} available)"
            )
        self._monitor = monitors[monitor_index]

        if show_cursor:
            logger.debug("Cursor overlay is not supported by the mss backend")

        logger.info(
            f"DisplaySource opened: monitor={monitor_index}, "
            f"size={self._monitor['width']}x{self._monitor['height']}"
        )

    def _read(self) -> Optional[np.ndarray]:
        try:
            shot = self._sct.grab(self._monitor)
        except mss.exception.ScreenShotError as e:
            logger.error(f"Screen grab failed on monitor {self.monitor_index}: {e}")
            self._mark_ended()
            return None

        bgra = np.asarray(shot, dtype=np.uint8)
        return cv2.cvtColor(bgra, cv2.COLOR_BGRA2BGR)

    def _release(self) -> None:
        self._sct.close()


async def acquire_display_stream(
    constraints: Optional[SourceConstraints] = None,
) -> DisplaySource:
    """
    Acquire the local display as a video source.

    Args:
        constraints: Requested constraints (cursor visibility, monitor)

    Returns:
        Opened DisplaySource

    Raises:
        SourceAcquisitionError: If the display is unavailable
    """
    constraints = constraints or SourceConstraints()
    return DisplaySource(
        monitor_index=constraints.monitor,
        show_cursor=constraints.cursor,
    )
