"""
Frame Rasterization
===================

Turn a live BGR matrix into an immutable, PNG-encoded Frame.
"""

import time
from typing import Callable, Optional

import numpy as np

from snapstream.frames.frame import Frame, generate_frame_id
from snapstream.stitch.decoder import encode_png


def rasterize(
    image: np.ndarray,
    clock: Callable[[], float] = time.time,
    png_compression: int = 3,
    frame_id: Optional[str] = None,
) -> Frame:
    """
    Encode a matrix at its native resolution into a new Frame.

    Args:
        image: BGR matrix (H, W, 3) or grayscale (H, W), dtype=uint8
        clock: Timestamp source
        png_compression: PNG compression level 0-9
        frame_id: Explicit id (a fresh one is generated otherwise)

    Returns:
        Frame with PNG payload and matching dimensions
    """
    height, width = image.shape[:2]
    return Frame(
        frame_id=frame_id or generate_frame_id(),
        image=encode_png(image, png_compression),
        width=int(width),
        height=int(height),
        captured_at=clock(),
    )
