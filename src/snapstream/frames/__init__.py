"""
Frames Module
=============

Frame record and ordered frame collection shared by capture and stitching.

    - Frame: Immutable captured sample (PNG bytes + dimensions)
    - FrameCollection: Immutable ordered sequence with append/delete/swap
    - SwapDirection: UP or DOWN for adjacent reordering
"""

from snapstream.frames.frame import Frame, generate_frame_id
from snapstream.frames.collection import FrameCollection, SwapDirection


__all__ = [
    "Frame",
    "FrameCollection",
    "SwapDirection",
    "generate_frame_id",
]
