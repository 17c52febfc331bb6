"""
Stitch Engine
=============

Render an ordered FrameCollection into one vertically stacked PNG.

Render pass:
    1. Empty collection -> no composite
    2. Compute canvas layout (max width, sum of heights)
    3. Fill canvas with the background colour
    4. Decode frames strictly in collection order, one at a time
    5. Place each decoded frame at its layout offset
    6. Encode the canvas to PNG exactly once

Each frame decode is awaited and its pixels placed before the next decode
starts. Decodes are never fanned out concurrently.

Publishing:
    invalidate() schedules a full re-render for a new collection state.
    Every request gets a generation number; a finished render is published
    only if no newer request exists (last mutation wins). A failed render
    keeps the previously published composite.

Failures:
    Anything going wrong while decoding or placing a frame surfaces as
    FrameDecodeError, a failed canvas encode as ImageEncodeError. Both are
    recorded in last_error and passed to on_error unless the render was
    already superseded.
"""

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

import numpy as np

from snapstream.frames.collection import FrameCollection
from snapstream.frames.frame import Frame
from snapstream.stitch.decoder import (
    FrameDecodeError,
    ImageCodecError,
    decode_frame,
    encode_png,
)
from snapstream.stitch.layout import compute_layout


logger = logging.getLogger(__name__)


FrameDecoder = Callable[[Frame], Awaitable[np.ndarray]]


@dataclass(frozen=True, slots=True)
class CompositeImage:
    """
    Stitched PNG for one collection state.

    Attributes:
        data: PNG-encoded bytes, suitable for a direct file write
        width: Canvas width (widest frame)
        height: Canvas height (sum of frame heights)
        frame_ids: Ids of the frames it was rendered from, top to bottom
    """

    data: bytes
    width: int
    height: int
    frame_ids: Tuple[str, ...]

    mime_type = "image/png"

    def to_data_url(self) -> str:
        """Self-contained data URL of the PNG."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def __repr__(self) -> str:
        return (
            f"CompositeImage(size={self.width}x{self.height}, "
            f"frames={len(self.frame_ids)}, bytes={len(self.data)})"
        )


class StitchEngine:
    """
    Deterministic vertical stitcher with last-mutation-wins publishing.

    Attributes:
        composite: Latest successfully published composite (None if absent)
        last_error: Error of the latest failed render, cleared on success
        is_stale: True while a newer render request has not been published

    Example:
        engine = StitchEngine(on_composite=show_preview)

        # After every collection change
        engine.invalidate(frames)

        # Or render and wait for the result
        composite = await engine.refresh(frames)
    """

    def __init__(
        self,
        background: Tuple[int, int, int] = (0, 0, 0),
        png_compression: int = 3,
        decoder: Optional[FrameDecoder] = None,
        on_composite: Optional[Callable[[Optional[CompositeImage]], None]] = None,
        on_error: Optional[Callable[[ImageCodecError], None]] = None,
    ) -> None:
        """
        Initialize stitch engine.

        Args:
            background: Canvas fill colour (BGR)
            png_compression: PNG compression level 0-9
            decoder: Async frame decoder (defaults to OpenCV PNG decode)
            on_composite: Called with each published composite
            on_error: Called with each reported render failure
        """
        self.background = tuple(background)
        self.png_compression = png_compression
        self._decoder: FrameDecoder = decoder or decode_frame
        self._on_composite = on_composite
        self._on_error = on_error

        self._composite: Optional[CompositeImage] = None
        self._last_error: Optional[ImageCodecError] = None
        self._generation: int = 0
        self._published_generation: int = 0
        self._pending: Optional[asyncio.Task] = None

        # Metrics
        self._render_count: int = 0
        self._failure_count: int = 0
        self._discarded_count: int = 0
        self._last_render_ms: float = 0.0

    @property
    def composite(self) -> Optional[CompositeImage]:
        return self._composite

    @property
    def last_error(self) -> Optional[ImageCodecError]:
        return self._last_error

    @property
    def is_stale(self) -> bool:
        return self._published_generation != self._generation

    async def render(self, collection: FrameCollection) -> Optional[CompositeImage]:
        """
        Run one render pass over a collection snapshot.

        Does not publish anything; see refresh() and invalidate().

        Args:
            collection: Frames in stitching order

        Returns:
            CompositeImage, or None for an empty collection

        Raises:
            FrameDecodeError: If any frame fails to decode or decodes to
                pixels that cannot be placed
            ImageEncodeError: If the canvas cannot be encoded
        """
        layout = compute_layout(collection)
        if layout is None:
            return None

        start_time = time.time()

        canvas = np.empty((layout.height, layout.width, 3), dtype=np.uint8)
        canvas[:] = self.background

        for frame, placement in zip(collection, layout.placements):
            pixels = await self._decode(frame)
            expected = (placement.height, placement.width, 3)
            if (
                not isinstance(pixels, np.ndarray)
                or pixels.shape != expected
                or pixels.dtype != np.uint8
            ):
                raise FrameDecodeError(
                    f"Decoded frame {frame.frame_id} has shape "
                    f"{getattr(pixels, 'shape', None)} and dtype "
                    f"{getattr(pixels, 'dtype', None)}, expected {expected} uint8"
                )
            canvas[
                placement.y:placement.y + placement.height,
                placement.x:placement.x + placement.width,
            ] = pixels

        data = await asyncio.to_thread(encode_png, canvas, self.png_compression)

        self._render_count += 1
        self._last_render_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Rendered {len(collection)} frames into "
            f"{layout.width}x{layout.height} in {self._last_render_ms:.1f}ms"
        )

        return CompositeImage(
            data=data,
            width=layout.width,
            height=layout.height,
            frame_ids=collection.ids,
        )

    async def _decode(self, frame: Frame) -> np.ndarray:
        try:
            return await self._decoder(frame)
        except FrameDecodeError:
            raise
        except Exception as e:
            raise FrameDecodeError(
                f"Decoder failed for frame {frame.frame_id}: {e}"
            ) from e

    def invalidate(self, collection: FrameCollection) -> asyncio.Task:
        """
        Schedule a fresh render for a new collection state.

        Must be called from within a running event loop. Any render still
        in flight is superseded and its result discarded.

        Returns:
            The scheduled task (failures are reported, not raised)
        """
        generation = self._next_generation()
        self._pending = asyncio.create_task(
            self._render_and_publish(generation, collection, raise_errors=False)
        )
        return self._pending

    async def refresh(self, collection: FrameCollection) -> Optional[CompositeImage]:
        """
        Render a collection and publish the result.

        Returns:
            The composite rendered from this collection. If a newer request
            superseded this render, whatever the engine has published at
            that moment instead, which may predate the newer request while
            its render is still in flight (await wait_idle() to settle it).

        Raises:
            ImageCodecError: If this render fails and was not superseded
        """
        generation = self._next_generation()
        await self._render_and_publish(generation, collection, raise_errors=True)
        return self._composite

    async def wait_idle(self) -> None:
        """Wait for the most recently scheduled render to settle."""
        while self._pending is not None and not self._pending.done():
            await asyncio.wait({self._pending})

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def _render_and_publish(
        self,
        generation: int,
        collection: FrameCollection,
        raise_errors: bool,
    ) -> None:
        try:
            composite = await self.render(collection)
        except ImageCodecError as e:
            if generation != self._generation:
                self._discarded_count += 1
                logger.debug(f"Discarding failed stale render (generation {generation})")
                return

            self._failure_count += 1
            self._last_error = e
            logger.error(f"Render failed, keeping previous composite: {e}")
            if self._on_error is not None:
                self._on_error(e)
            if raise_errors:
                raise
            return

        if generation != self._generation:
            self._discarded_count += 1
            logger.debug(
                f"Discarding stale render (generation {generation}, "
                f"latest {self._generation})"
            )
            return

        self._composite = composite
        self._published_generation = generation
        self._last_error = None
        if self._on_composite is not None:
            self._on_composite(composite)

    def metrics(self) -> dict:
        """
        Get engine metrics for observability.

        Returns:
            Dict with render, failure and discard counts
        """
        return {
            "render_count": self._render_count,
            "failure_count": self._failure_count,
            "discarded_count": self._discarded_count,
            "last_render_ms": round(self._last_render_ms, 2),
            "generation": self._generation,
            "published_generation": self._published_generation,
        }
