"""
Frame Data Model
=================

Internal frame representation shared by capture and stitching.

This module defines the typed Frame class that is passed from the capture
session into the frame collection and from there into the stitch engine.

Design Rules:
    - This is the ONLY frame format passed between components
    - Frames are immutable once captured
    - Image payload is stored encoded (PNG), never as a raw matrix
"""

import uuid
from dataclasses import dataclass


def generate_frame_id() -> str:
    """Generate a collision-resistant frame identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Frame:
    """
    One captured raster sample.

    This is the canonical internal representation of a frame.
    It is immutable (frozen) to prevent accidental modification.

    Attributes:
        frame_id: Opaque unique identifier, stable for the frame's lifetime
        image: PNG-encoded image bytes
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        captured_at: UNIX timestamp when the frame was captured
    """

    frame_id: str
    image: bytes
    width: int
    height: int
    captured_at: float

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"Frame dimensions must be >= 1, got {self.width}x{self.height}"
            )

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(frame_id={self.frame_id!r}, "
            f"size={self.width}x{self.height}, "
            f"captured_at={self.captured_at:.3f})"
        )
