"""
Video Source Tests
==================

Tests for source bookkeeping, the mss display backend and the WebSocket
relay backend. No real display or network is used.
"""

import asyncio
import base64
import json
import threading

import cv2
import mss
import mss.exception
import numpy as np
import pytest

import snapstream.capture.remote as remote_module
from snapstream.capture import (
    DisplaySource,
    RemoteStreamSource,
    SourceAcquisitionError,
    SourceConstraints,
    SourceTerminatedExternally,
    acquire_display_stream,
    create_source_provider,
)
from snapstream.config import Settings
from snapstream.stitch import decode_image_bytes

from helpers import FakeVideoSource, solid_image


class FakeScreenGrabber:
    """Stand-in for mss.mss() returning solid BGRA screenshots."""

    instances = []

    def __init__(self) -> None:
        self.monitors = [
            {"left": 0, "top": 0, "width": 80, "height": 60},
            {"left": 0, "top": 0, "width": 80, "height": 60},
        ]
        self.fail = False
        self.closed = False
        FakeScreenGrabber.instances.append(self)

    def grab(self, monitor):
        if self.fail:
            raise mss.exception.ScreenShotError("display disconnected")
        bgra = np.zeros((monitor["height"], monitor["width"], 4), dtype=np.uint8)
        bgra[:] = (1, 2, 3, 255)
        return bgra

    def close(self) -> None:
        self.closed = True


class FakeWebSocket:
    """Async-iterable message feed that stays open until released."""

    def __init__(self, messages) -> None:
        self.messages = list(messages)
        self.hold = asyncio.Event()
        self.drained = asyncio.Event()
        self.closed = False

    def __aiter__(self):
        return self._feed()

    async def _feed(self):
        for message in self.messages:
            yield message
        # Reached only after the consumer finished the last message
        self.drained.set()
        await self.hold.wait()

    async def close(self) -> None:
        self.closed = True


def encoded_message(frame_id: int, width: int = 40, height: int = 30) -> str:
    ok, png = cv2.imencode(".png", solid_image(width, height))
    return json.dumps({
        "frame_id": frame_id,
        "timestamp": 1700000000.0 + frame_id,
        "image": base64.b64encode(png.tobytes()).decode("ascii"),
    })


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


async def drain(websocket: FakeWebSocket) -> None:
    await asyncio.wait_for(websocket.drained.wait(), timeout=5.0)


class TestBaseVideoSource:
    """Tests for ended/close bookkeeping."""

    def test_end_notifies_once(self, fake_source):
        """Verify ended listeners fire exactly once."""
        calls = []
        fake_source.add_ended_listener(lambda: calls.append(1))
        fake_source.end()
        fake_source.end()
        assert calls == [1]
        assert fake_source.ended

    def test_read_after_end_raises(self, fake_source):
        """Verify reading an ended source raises SourceTerminatedExternally."""
        fake_source.end()
        with pytest.raises(SourceTerminatedExternally):
            fake_source.read_frame()

    def test_close_is_idempotent_and_silences_listeners(self, fake_source):
        """Verify close() releases once and suppresses later end notifications."""
        calls = []
        fake_source.add_ended_listener(lambda: calls.append(1))
        fake_source.close()
        fake_source.close()
        fake_source.end()
        assert calls == []
        assert fake_source.release_count == 1

    def test_metrics_count_reads(self):
        """Verify frame and empty reads are counted separately."""
        source = FakeVideoSource()
        source.read_frame()
        source.image = None
        source.read_frame()
        metrics = source.metrics()
        assert metrics["frames_read"] == 1
        assert metrics["empty_reads"] == 1


class TestDisplaySource:
    """Tests for the mss backend."""

    @pytest.fixture(autouse=True)
    def fake_mss(self, monkeypatch):
        """Replace mss.mss with an in-memory grabber."""
        FakeScreenGrabber.instances = []
        monkeypatch.setattr(mss, "mss", FakeScreenGrabber)

    def test_grab_converts_to_bgr(self):
        """Verify BGRA screenshots are returned as BGR at monitor size."""
        source = asyncio.run(acquire_display_stream(SourceConstraints(monitor=1)))
        image = source.read_frame()
        assert image.shape == (60, 80, 3)
        assert tuple(image[0, 0]) == (1, 2, 3)

    def test_missing_monitor(self):
        """Verify an unknown monitor index fails acquisition and closes the grabber."""
        with pytest.raises(SourceAcquisitionError):
            DisplaySource(monitor_index=5)
        assert FakeScreenGrabber.instances[-1].closed

    def test_grab_failure_ends_source(self):
        """Verify a failing grab marks the display source ended."""
        calls = []
        source = DisplaySource(monitor_index=1)
        source.add_ended_listener(lambda: calls.append(1))
        FakeScreenGrabber.instances[-1].fail = True

        assert source.read_frame() is None
        assert source.ended
        assert calls == [1]

    def test_close_releases_grabber(self):
        """Verify close() closes the mss grabber."""
        source = DisplaySource(monitor_index=0)
        source.close()
        assert FakeScreenGrabber.instances[-1].closed


class TestRemoteStreamSource:
    """Tests for the WebSocket relay backend."""

    def test_keeps_latest_frame_and_skips_bad_messages(self):
        """Verify malformed messages are counted and the newest frame is kept."""
        async def scenario():
            websocket = FakeWebSocket([
                encoded_message(1, 40, 30),
                "not json",
                json.dumps({"frame_id": 2, "timestamp": 1.0, "image": "@@@"}),
                json.dumps({"frame_id": 3, "timestamp": 2.0, "image": "AAAA"}),
                encoded_message(4, 50, 20),
            ])
            source = RemoteStreamSource("ws://relay", websocket)
            await drain(websocket)
            image = source.read_frame()
            metrics = source.metrics()
            source.close()
            await settle()
            return image, metrics, websocket

        image, metrics, websocket = asyncio.run(scenario())

        assert image.shape == (20, 50, 3)
        assert metrics["parse_errors"] == 3
        assert metrics["last_frame_id"] == 4
        assert metrics["messages_received"] == 5
        assert websocket.closed

    def test_decodes_off_the_event_loop(self, monkeypatch):
        """Verify relay images are decoded in a worker thread."""
        threads = []

        def recording_decode(data, label="image"):
            threads.append(threading.current_thread())
            return decode_image_bytes(data, label)

        monkeypatch.setattr(remote_module, "decode_image_bytes", recording_decode)

        async def scenario():
            websocket = FakeWebSocket([encoded_message(1), encoded_message(2)])
            source = RemoteStreamSource("ws://relay", websocket)
            await drain(websocket)
            source.close()
            await settle()

        asyncio.run(scenario())

        assert len(threads) == 2
        assert all(thread is not threading.main_thread() for thread in threads)

    def test_connection_close_ends_source(self):
        """Verify a closed relay connection ends the source."""
        calls = []

        async def scenario():
            websocket = FakeWebSocket([encoded_message(1)])
            source = RemoteStreamSource("ws://relay", websocket)
            source.add_ended_listener(lambda: calls.append(1))
            await drain(websocket)
            websocket.hold.set()
            await settle()
            return source

        source = asyncio.run(scenario())

        assert source.ended
        assert calls == [1]

    def test_unreachable_relay(self):
        """Verify a refused connection raises SourceAcquisitionError."""
        async def scenario():
            await RemoteStreamSource.connect("ws://127.0.0.1:9/ws", open_timeout=1.0)

        with pytest.raises(SourceAcquisitionError):
            asyncio.run(scenario())


class TestSourceFactory:
    """Tests for create_source_provider."""

    def test_display_backend(self):
        """Verify the display backend maps to acquire_display_stream."""
        provider = create_source_provider(Settings())
        assert provider is acquire_display_stream

    def test_unknown_backend(self):
        """Verify an unknown backend name is refused."""
        settings = Settings.model_validate({"source": {"backend": "webcam"}})
        with pytest.raises(ValueError):
            create_source_provider(settings)
