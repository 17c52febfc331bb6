"""
Remote Stream Source
====================

WebSocket client for sampling a remote screen-share relay.

This module provides the RemoteStreamSource class which:
    - Connects to a relay's WebSocket endpoint
    - Receives and validates JSON frame messages
    - Keeps only the most recent decoded frame
    - Marks the source ended when the connection closes

Message format:
    {"frame_id": 12, "timestamp": 1707321234.567, "image": "<base64 PNG/JPEG>"}

Design Rules:
    - Does NOT reconnect; a closed connection ends the capture session
    - Logs malformed messages and continues
    - Image decoding runs off the event loop
    - read_frame() returns the latest frame without waiting
"""

import asyncio
import base64
import binascii
import json
import logging
from typing import Optional, Tuple

import numpy as np
import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from snapstream.capture.source import (
    BaseVideoSource,
    SourceAcquisitionError,
    SourceConstraints,
)
from snapstream.stitch.decoder import FrameDecodeError, decode_image_bytes


logger = logging.getLogger(__name__)


class RemoteStreamMetrics:
    """Metrics for RemoteStreamSource observability."""

    __slots__ = (
        "messages_received",
        "last_frame_id",
        "last_timestamp",
        "validation_warnings",
        "parse_errors",
    )

    def __init__(self) -> None:
        self.messages_received: int = 0
        self.last_frame_id: int = -1
        self.last_timestamp: float = 0.0
        self.validation_warnings: int = 0
        self.parse_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "messages_received": self.messages_received,
            "last_frame_id": self.last_frame_id,
            "last_timestamp": self.last_timestamp,
            "validation_warnings": self.validation_warnings,
            "parse_errors": self.parse_errors,
        }


class RemoteStreamSource(BaseVideoSource):
    """
    Video source fed by a WebSocket relay.

    Create with connect(); the constructor expects an open connection.

    Example:
        source = await RemoteStreamSource.connect("ws://relay:8000/ws/stream")
        image = source.read_frame()
        source.close()
    """

    def __init__(self, url: str, websocket) -> None:
        super().__init__(name=f"stream:{url}")
        self.url = url
        self._websocket = websocket
        self._latest: Optional[np.ndarray] = None
        self.stream_metrics = RemoteStreamMetrics()
        self._reader: asyncio.Task = asyncio.create_task(self._receive_loop())

    @classmethod
    async def connect(
        cls,
        url: str,
        open_timeout: float = 10.0,
    ) -> "RemoteStreamSource":
        """
        Open the relay connection.

        Raises:
            SourceAcquisitionError: If the connection cannot be established
        """
        logger.info(f"Connecting to screen-share relay: {url}")
        try:
            websocket = await websockets.connect(
                url,
                open_timeout=open_timeout,
                ping_interval=20,
                ping_timeout=10,
                close_timeout=5,
                max_size=None,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise SourceAcquisitionError(f"Cannot connect to {url}: {e}") from e

        logger.info(f"Connected to screen-share relay: {url}")
        return cls(url, websocket)

    def _read(self) -> Optional[np.ndarray]:
        return self._latest

    def _release(self) -> None:
        self._reader.cancel()

    async def _receive_loop(self) -> None:
        """Consume messages until the connection closes or the source is released."""
        try:
            async for message in self._websocket:
                parsed = self._parse_message(message)
                if parsed is None:
                    continue
                frame_id, timestamp, image_bytes = parsed
                try:
                    image = await asyncio.to_thread(
                        decode_image_bytes, image_bytes, f"relay frame {frame_id}"
                    )
                except FrameDecodeError as e:
                    self.stream_metrics.parse_errors += 1
                    logger.error(f"Failed to decode relay frame: {e}")
                    continue
                self._check_ordering(frame_id, timestamp)
                self._latest = image
            logger.info("Relay connection closed normally")
        except ConnectionClosedOK:
            logger.info("Relay connection closed normally")
        except ConnectionClosed as e:
            logger.warning(f"Relay connection closed with error: {e}")
        finally:
            await self._websocket.close()
            self._mark_ended()

    def _parse_message(self, raw) -> Optional[Tuple[int, float, bytes]]:
        """
        Parse a raw message into (frame_id, timestamp, image bytes).

        Returns:
            Parsed fields, or None on a malformed message
        """
        self.stream_metrics.messages_received += 1

        try:
            data = json.loads(raw)
            frame_id = int(data["frame_id"])
            timestamp = float(data["timestamp"])
            image_bytes = base64.b64decode(data["image"], validate=True)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError, binascii.Error) as e:
            self.stream_metrics.parse_errors += 1
            logger.error(f"Invalid frame message: {e}")
            return None

        return frame_id, timestamp, image_bytes

    def _check_ordering(self, frame_id: int, timestamp: float) -> None:
        """Log ordering warnings; frames are never rejected for ordering."""
        if frame_id <= self.stream_metrics.last_frame_id:
            self.stream_metrics.validation_warnings += 1
            logger.warning(
                f"Frame ID went backwards: got {frame_id}, "
                f"previous was {self.stream_metrics.last_frame_id}"
            )
        if timestamp < self.stream_metrics.last_timestamp:
            self.stream_metrics.validation_warnings += 1
            logger.warning(
                f"Timestamp went backwards: got {timestamp:.3f}, "
                f"previous was {self.stream_metrics.last_timestamp:.3f}"
            )

        self.stream_metrics.last_frame_id = frame_id
        self.stream_metrics.last_timestamp = timestamp

    def metrics(self) -> dict:
        merged = super().metrics()
        merged.update(self.stream_metrics.to_dict())
        return merged


async def acquire_remote_stream(
    url: str,
    constraints: Optional[SourceConstraints] = None,
    open_timeout: float = 10.0,
) -> RemoteStreamSource:
    """
    Acquire a remote screen-share relay as a video source.

    Cursor visibility is decided by the relay; the constraint is only logged.

    Raises:
        SourceAcquisitionError: If the relay is unreachable
    """
    constraints = constraints or SourceConstraints()
    logger.debug(f"Remote stream constraints: cursor={constraints.cursor}")
    return await RemoteStreamSource.connect(url, open_timeout=open_timeout)
