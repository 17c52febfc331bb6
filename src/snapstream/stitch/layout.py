"""
Vertical Layout
===============

Pure geometry for stacking frames top to bottom.

Formulas:
    canvas_width  = max(frame.width for frame in frames)
    canvas_height = sum(frame.height for frame in frames)
    x_i = (canvas_width - width_i) // 2
    y_i = sum(height_j for j < i)
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from snapstream.frames.collection import FrameCollection


@dataclass(frozen=True, slots=True)
class Placement:
    """Position of one frame on the canvas."""

    frame_id: str
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class CanvasLayout:
    """Canvas size plus one placement per frame, in stitching order."""

    width: int
    height: int
    placements: Tuple[Placement, ...]


def compute_layout(collection: FrameCollection) -> Optional[CanvasLayout]:
    """
    Compute the vertical stacking layout for a collection.

    Frames narrower than the canvas are centered horizontally (floor of
    the half difference). No frame is scaled.

    Args:
        collection: Frames in stitching order

    Returns:
        CanvasLayout, or None for an empty collection
    """
    if not collection:
        return None

    canvas_width = max(frame.width for frame in collection)
    canvas_height = sum(frame.height for frame in collection)

    placements = []
    y_offset = 0
    for frame in collection:
        placements.append(
            Placement(
                frame_id=frame.frame_id,
                x=(canvas_width - frame.width) // 2,
                y=y_offset,
                width=frame.width,
                height=frame.height,
            )
        )
        y_offset += frame.height

    return CanvasLayout(
        width=canvas_width,
        height=canvas_height,
        placements=tuple(placements),
    )
