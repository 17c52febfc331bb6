"""
Image Codec
===========

Dedicated module for decoding frame payloads into OpenCV matrices and
encoding matrices back into PNG bytes.

Design Rules:
    - This is the ONLY place in the codebase that decodes or encodes images
    - Validates shape, dtype and declared frame dimensions
    - Fails fast on corrupt payloads
    - Async callers decode off the event loop via asyncio.to_thread
"""

import asyncio
import logging

import cv2
import numpy as np

from snapstream.frames.frame import Frame


logger = logging.getLogger(__name__)


class ImageCodecError(Exception):
    """Base class for image decode and encode failures."""
    pass


class FrameDecodeError(ImageCodecError):
    """Raised when a frame payload cannot be decoded."""
    pass


class ImageEncodeError(ImageCodecError):
    """Raised when a matrix cannot be encoded to PNG."""
    pass


def decode_image_bytes(data: bytes, label: str = "image") -> np.ndarray:
    """
    Decode PNG/JPEG bytes to a BGR numpy array.

    Args:
        data: Encoded image bytes
        label: Name used in error messages

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        FrameDecodeError: If decoding fails or the result is not 3-channel uint8
    """
    try:
        nparr = np.frombuffer(data, np.uint8)
        bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except Exception as e:
        raise FrameDecodeError(f"Unexpected error decoding {label}: {e}") from e

    if bgr is None:
        raise FrameDecodeError(
            f"Failed to decode {label}: cv2.imdecode returned None"
        )

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise FrameDecodeError(f"Invalid image shape for {label}: {bgr.shape}")

    if bgr.dtype != np.uint8:
        raise FrameDecodeError(f"Invalid dtype for {label}: {bgr.dtype}")

    return bgr


def decode_frame_bgr(frame: Frame) -> np.ndarray:
    """
    Decode a frame's PNG payload to a BGR numpy array.

    Args:
        frame: Frame with PNG-encoded image

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        FrameDecodeError: If decoding fails or the image does not match
            the frame's declared dimensions
    """
    bgr = decode_image_bytes(frame.image, label=f"frame {frame.frame_id}")

    height, width = bgr.shape[:2]
    if (width, height) != (frame.width, frame.height):
        raise FrameDecodeError(
            f"Frame {frame.frame_id} declares {frame.width}x{frame.height} "
            f"but decodes to {width}x{height}"
        )

    return bgr


async def decode_frame(frame: Frame) -> np.ndarray:
    """Decode a frame without blocking the event loop."""
    return await asyncio.to_thread(decode_frame_bgr, frame)


def encode_png(image: np.ndarray, compression: int = 3) -> bytes:
    """
    Encode a BGR (or grayscale) matrix as PNG bytes.

    Args:
        image: np.ndarray (H, W) or (H, W, 3), dtype=uint8
        compression: PNG compression level 0-9

    Returns:
        PNG-encoded bytes

    Raises:
        ImageEncodeError: If OpenCV rejects the matrix
    """
    try:
        ok, buffer = cv2.imencode(
            ".png", image, [cv2.IMWRITE_PNG_COMPRESSION, compression]
        )
    except cv2.error as e:
        raise ImageEncodeError(
            f"cv2.imencode rejected image of shape {image.shape}: {e}"
        ) from e
    if not ok:
        raise ImageEncodeError(f"cv2.imencode failed for image of shape {image.shape}")
    return buffer.tobytes()
