"""
Capture Modes
=============

Tagged capture-mode variants.

Each mode is its own type so that mode-specific data lives only where it
applies: the recording flag and timer task exist on TimerLongMode alone,
which rules out a "recording but not in timer mode" state.

    SingleMode      one trigger -> one frame -> session finished
    ManualLongMode  each trigger appends one frame
    TimerLongMode   one frame every `period` seconds while recording
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Union

from snapstream.models.capture import CaptureModeKind


@dataclass(frozen=True)
class SingleMode:
    """One-shot capture."""

    kind = CaptureModeKind.SINGLE


@dataclass(frozen=True)
class ManualLongMode:
    """Repeated manual capture."""

    kind = CaptureModeKind.LONG_MANUAL


@dataclass
class TimerLongMode:
    """
    Periodic capture.

    Attributes:
        period: Seconds between automatic captures
        recording: Whether the timer is currently sampling
        task: Running timer task while recording
    """

    period: float
    recording: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)

    kind = CaptureModeKind.LONG_TIMER

    def stop_timer(self) -> None:
        """Pause sampling and cancel the pending tick."""
        self.recording = False
        if self.task is not None:
            self.task.cancel()
            self.task = None


CaptureMode = Union[SingleMode, ManualLongMode, TimerLongMode]


def build_mode(kind: CaptureModeKind, timer_period: float) -> CaptureMode:
    """Create the variant for a selectable mode kind."""
    kind = CaptureModeKind(kind)
    if kind == CaptureModeKind.SINGLE:
        return SingleMode()
    if kind == CaptureModeKind.LONG_MANUAL:
        return ManualLongMode()
    return TimerLongMode(period=timer_period)
