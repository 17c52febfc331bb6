"""
Stitch Module
=============

Vertical composition of ordered frames into one PNG.

    - compute_layout: Canvas size and per-frame offsets
    - StitchEngine: Sequential decode, composition, single encode
    - CompositeImage: Published stitched PNG
    - FrameDecodeError / ImageEncodeError: Codec failures (ImageCodecError)
"""

from snapstream.stitch.decoder import (
    FrameDecodeError,
    ImageCodecError,
    ImageEncodeError,
    decode_frame,
    decode_frame_bgr,
    decode_image_bytes,
    encode_png,
)
from snapstream.stitch.layout import CanvasLayout, Placement, compute_layout
from snapstream.stitch.engine import CompositeImage, StitchEngine


__all__ = [
    "CanvasLayout",
    "CompositeImage",
    "FrameDecodeError",
    "ImageCodecError",
    "ImageEncodeError",
    "Placement",
    "StitchEngine",
    "compute_layout",
    "decode_frame",
    "decode_frame_bgr",
    "decode_image_bytes",
    "encode_png",
]
