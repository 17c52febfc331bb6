"""
Capture Session
===============

State machine that samples a live video source into ordered frames.

States:
    INITIALIZING → ACTIVE → FINISHED | CANCELLED

Modes (selectable while ACTIVE, see capture.modes):
    SINGLE       trigger() captures one frame and finishes the session
    LONG_MANUAL  trigger() appends one frame; finish() needs >= 1 frame
    LONG_TIMER   set_recording(True) captures every period; pausing keeps
                 frames; finish() needs >= 1 frame

Resource rules:
    - The session owns its video source exclusively
    - Every exit path (finish, cancel, external end, context exit)
      releases the source and cancels the timer before returning
    - A timer tick that wakes after the session left ACTIVE does nothing
    - A failed timer capture is logged and skipped; sampling continues

Example:
    async with CaptureSession(on_finished=open_editor) as session:
        session.select_mode(CaptureModeKind.LONG_TIMER)
        session.set_recording(True)
        await asyncio.sleep(10)
        frames = session.finish()
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from snapstream.capture.factory import (
    SourceProvider,
    create_source_provider,
    default_constraints,
)
from snapstream.capture.modes import (
    CaptureMode,
    SingleMode,
    TimerLongMode,
    build_mode,
)
from snapstream.capture.raster import rasterize
from snapstream.capture.source import (
    SourceAcquisitionError,
    SourceConstraints,
    SourceTerminatedExternally,
    VideoSource,
)
from snapstream.config import settings
from snapstream.frames.collection import FrameCollection
from snapstream.frames.frame import Frame
from snapstream.models.capture import CancelReason, CaptureModeKind, SessionState


logger = logging.getLogger(__name__)


class CaptureStateError(Exception):
    """Raised when an operation is not allowed in the session's current state."""
    pass


FinishedCallback = Callable[[FrameCollection], None]
CancelledCallback = Callable[[CancelReason, Optional[FrameCollection]], None]


class CaptureSession:
    """
    Capture state machine for one capture session.

    Attributes:
        state: Current SessionState
        mode: Current capture mode variant
        frames: Frames captured so far, in capture order
        recording: True only while a timer-mode session is sampling
        cancel_reason: Why the session was cancelled, if it was
    """

    def __init__(
        self,
        acquire: Optional[SourceProvider] = None,
        constraints: Optional[SourceConstraints] = None,
        timer_period: Optional[float] = None,
        on_finished: Optional[FinishedCallback] = None,
        on_cancelled: Optional[CancelledCallback] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        png_compression: Optional[int] = None,
    ) -> None:
        """
        Initialize capture session.

        Args:
            acquire: Async source provider (defaults to configured backend)
            constraints: Source constraints (defaults from configuration)
            timer_period: Seconds between timer captures
            on_finished: Called with the final collection on finish
            on_cancelled: Called with the reason and, for SOURCE_ENDED,
                the frames captured so far
            sleep: Awaitable sleep used by the timer
            clock: Timestamp source for captured frames
            png_compression: PNG compression level for captured frames
        """
        self._acquire = acquire or create_source_provider()
        self._constraints = constraints or default_constraints()
        self.timer_period = (
            timer_period if timer_period is not None
            else settings.capture.timer_period_seconds
        )
        if self.timer_period <= 0:
            raise ValueError("timer_period must be > 0")
        self._on_finished = on_finished
        self._on_cancelled = on_cancelled
        self._sleep = sleep
        self._clock = clock
        self._png_compression = (
            png_compression if png_compression is not None
            else settings.stitch.png_compression
        )

        self._state: SessionState = SessionState.INITIALIZING
        self._started: bool = False
        self._source: Optional[VideoSource] = None
        self._mode: CaptureMode = SingleMode()
        self._frames: FrameCollection = FrameCollection()
        self._cancel_reason: Optional[CancelReason] = None

        # Metrics
        self._trigger_count: int = 0
        self._timer_ticks: int = 0
        self._empty_captures: int = 0
        self._capture_errors: int = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> CaptureMode:
        return self._mode

    @property
    def frames(self) -> FrameCollection:
        return self._frames

    @property
    def recording(self) -> bool:
        return isinstance(self._mode, TimerLongMode) and self._mode.recording

    @property
    def cancel_reason(self) -> Optional[CancelReason]:
        return self._cancel_reason

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> SessionState:
        """
        Acquire the video source and enter ACTIVE.

        On acquisition failure the session goes straight to CANCELLED and
        the cancel callback fires with ACQUISITION_FAILED.

        Returns:
            The state after acquisition (ACTIVE or CANCELLED)
        """
        if self._started:
            raise CaptureStateError("Capture session already started")
        self._started = True

        logger.info("Capture session initializing, requesting video source")
        try:
            source = await self._acquire(self._constraints)
        except SourceAcquisitionError as e:
            logger.error(f"Video source acquisition failed: {e}")
            if self._state is SessionState.INITIALIZING:
                self._enter_cancelled(CancelReason.ACQUISITION_FAILED)
            return self._state

        if self._state is not SessionState.INITIALIZING:
            # Cancelled while the source was being granted
            logger.info("Session cancelled during initialization, releasing source")
            source.close()
            return self._state

        self._source = source
        self._state = SessionState.ACTIVE
        source.add_ended_listener(self._handle_source_ended)
        logger.info("Capture session active")

        if source.ended:
            self._handle_source_ended()

        return self._state

    def finish(self) -> FrameCollection:
        """
        Release the source and hand over the captured frames.

        Raises:
            CaptureStateError: If not ACTIVE or no frame was captured
        """
        self._require_active("finish")
        if not self._frames:
            raise CaptureStateError("Cannot finish a capture session without frames")

        frames = self._frames
        self._release()
        self._state = SessionState.FINISHED
        logger.info(f"Capture session finished with {len(frames)} frames")

        if self._on_finished is not None:
            self._on_finished(frames)
        return frames

    def cancel(self) -> None:
        """
        Release the source, cancel the timer and discard frames.

        Safe to call in any state; a no-op once the session has ended.
        """
        if self._state.is_terminal:
            return
        self._enter_cancelled(CancelReason.USER)

    async def __aenter__(self) -> "CaptureSession":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        if not self._state.is_terminal:
            self.cancel()

    # -------------------------------------------------------------------------
    # Mode control
    # -------------------------------------------------------------------------

    def select_mode(self, kind: CaptureModeKind) -> CaptureMode:
        """
        Switch capture mode. Captured frames are kept.

        Leaving timer mode stops its timer. Re-selecting the current mode
        is a no-op.
        """
        self._require_active("select_mode")
        kind = CaptureModeKind(kind)
        if self._mode.kind == kind:
            return self._mode

        if isinstance(self._mode, TimerLongMode):
            self._mode.stop_timer()

        self._mode = build_mode(kind, self.timer_period)
        logger.info(f"Capture mode: {kind.value}")
        return self._mode

    def set_recording(self, recording: bool) -> None:
        """
        Start or pause timer sampling.

        Must be called from within the running event loop.

        Raises:
            CaptureStateError: If not ACTIVE or not in timer mode
        """
        self._require_active("set_recording")
        mode = self._mode
        if not isinstance(mode, TimerLongMode):
            raise CaptureStateError(
                f"Recording is only available in {CaptureModeKind.LONG_TIMER.value} mode"
            )
        if recording == mode.recording:
            return

        if recording:
            mode.recording = True
            mode.task = asyncio.get_running_loop().create_task(self._run_timer(mode))
            logger.info(f"Timer recording started: every {mode.period}s")
        else:
            mode.stop_timer()
            logger.info(f"Timer recording paused with {len(self._frames)} frames")

    def toggle_recording(self) -> bool:
        """Flip the recording flag. Returns the new value."""
        self.set_recording(not self.recording)
        return self.recording

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    def trigger(self) -> Optional[Frame]:
        """
        Capture one frame now.

        In SINGLE mode a successful capture finishes the session.

        Returns:
            The captured frame, or None if the source had no frame

        Raises:
            CaptureStateError: If not ACTIVE
            ImageEncodeError: If the source's current image cannot be encoded
        """
        self._require_active("trigger")
        self._trigger_count += 1
        frame = self._capture()
        if frame is not None and isinstance(self._mode, SingleMode):
            self.finish()
        return frame

    def _capture(self) -> Optional[Frame]:
        """Rasterize the source's current frame and append it."""
        try:
            image = self._source.read_frame()
        except SourceTerminatedExternally:
            self._handle_source_ended()
            return None

        if image is None or self._state is not SessionState.ACTIVE:
            self._empty_captures += 1
            logger.debug("No current frame available, nothing captured")
            return None

        frame = rasterize(image, self._clock, self._png_compression)
        self._frames = self._frames.append(frame)
        logger.debug(f"Captured {frame!r} ({len(self._frames)} total)")
        return frame

    async def _run_timer(self, mode: TimerLongMode) -> None:
        """Capture one frame per period until cancelled or paused."""
        try:
            while True:
                await self._sleep(mode.period)
                if (
                    self._state is not SessionState.ACTIVE
                    or self._mode is not mode
                    or not mode.recording
                ):
                    return
                self._timer_ticks += 1
                try:
                    self._capture()
                except Exception as e:
                    self._capture_errors += 1
                    logger.error(
                        f"Timer capture failed (tick={self._timer_ticks}): {e}"
                    )
                    continue  # Skip this tick
        except asyncio.CancelledError:
            logger.debug("Timer task cancelled")
            raise

    # -------------------------------------------------------------------------
    # Internal transitions
    # -------------------------------------------------------------------------

    def _handle_source_ended(self) -> None:
        """Forced stop when the source ends outside the session's control."""
        if self._state is not SessionState.ACTIVE:
            return
        logger.warning(
            f"Video source ended externally, stopping with {len(self._frames)} frames"
        )
        self._enter_cancelled(CancelReason.SOURCE_ENDED, self._frames)

    def _enter_cancelled(
        self,
        reason: CancelReason,
        frames: Optional[FrameCollection] = None,
    ) -> None:
        self._release()
        if frames is None:
            self._frames = FrameCollection()
        self._state = SessionState.CANCELLED
        self._cancel_reason = reason
        logger.info(f"Capture session cancelled: {reason.value}")

        if self._on_cancelled is not None:
            self._on_cancelled(reason, frames)

    def _release(self) -> None:
        """Cancel any timer and release the video source."""
        if isinstance(self._mode, TimerLongMode):
            self._mode.stop_timer()
        if self._source is not None:
            source, self._source = self._source, None
            source.close()

    def _require_active(self, operation: str) -> None:
        if self._state is not SessionState.ACTIVE:
            raise CaptureStateError(
                f"Cannot {operation} while session is {self._state.value}"
            )

    def metrics(self) -> dict:
        """
        Get session metrics for observability.

        Returns:
            Dict with state, mode, frame and trigger counts
        """
        return {
            "state": self._state.value,
            "mode": self._mode.kind.value,
            "recording": self.recording,
            "frame_count": len(self._frames),
            "trigger_count": self._trigger_count,
            "timer_ticks": self._timer_ticks,
            "empty_captures": self._empty_captures,
            "capture_errors": self._capture_errors,
        }
