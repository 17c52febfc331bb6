"""
Capture Module
==============

Video sources and the capture session state machine.

    - VideoSource / BaseVideoSource: Live source protocol and base class
    - DisplaySource: Local monitor capture (mss)
    - RemoteStreamSource: WebSocket screen-share relay
    - CaptureSession: INITIALIZING → ACTIVE → FINISHED | CANCELLED
    - SingleMode / ManualLongMode / TimerLongMode: Capture mode variants

Example:
    from snapstream.capture import CaptureSession
    from snapstream.models import CaptureModeKind

    async with CaptureSession() as session:
        session.select_mode(CaptureModeKind.LONG_MANUAL)
        session.trigger()
        frames = session.finish()
"""

from snapstream.capture.source import (
    BaseVideoSource,
    SourceAcquisitionError,
    SourceConstraints,
    SourceTerminatedExternally,
    VideoSource,
)
from snapstream.capture.display import DisplaySource, acquire_display_stream
from snapstream.capture.remote import RemoteStreamSource, acquire_remote_stream
from snapstream.capture.modes import (
    CaptureMode,
    ManualLongMode,
    SingleMode,
    TimerLongMode,
    build_mode,
)
from snapstream.capture.raster import rasterize
from snapstream.capture.factory import create_source_provider, default_constraints
from snapstream.capture.session import CaptureSession, CaptureStateError
from snapstream.models.capture import CancelReason, CaptureModeKind, SessionState


__all__ = [
    "BaseVideoSource",
    "CancelReason",
    "CaptureMode",
    "CaptureModeKind",
    "CaptureSession",
    "CaptureStateError",
    "DisplaySource",
    "ManualLongMode",
    "RemoteStreamSource",
    "SessionState",
    "SingleMode",
    "SourceAcquisitionError",
    "SourceConstraints",
    "SourceTerminatedExternally",
    "TimerLongMode",
    "VideoSource",
    "acquire_display_stream",
    "acquire_remote_stream",
    "build_mode",
    "create_source_provider",
    "default_constraints",
    "rasterize",
]
