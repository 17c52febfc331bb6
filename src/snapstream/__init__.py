"""
SnapStream
==========

Capture frames from a live display stream and stitch them into one
vertically stacked image.

This package provides the core of the SnapStream capture tool. It samples a
video source into ordered frames under a selected capture mode, lets the
caller reorder or drop frames, and renders the ordered frames into a single
composite PNG that can optionally be handed to an analysis backend.

Components:
    - frames: Frame record and immutable FrameCollection
    - capture: Video sources and the capture session state machine
    - stitch: Sequential decode and vertical composition engine
    - analysis: Analysis gateway protocol and backends
    - config: YAML + environment configuration

Example:
    from snapstream.capture import CaptureSession, CaptureModeKind
    from snapstream.stitch import StitchEngine

    async with CaptureSession() as session:
        session.select_mode(CaptureModeKind.LONG_MANUAL)
        session.trigger()
        session.trigger()
        frames = session.finish()

    composite = await StitchEngine().render(frames)

Note:
    There is no command-line entry point. The package is a library for an
    interactive front end.
"""

__version__ = "0.1.0"
__author__ = "SnapStream Project"

__all__ = [
    "__version__",
]
