"""
Data Models
===========

Enums and pydantic models shared across SnapStream.

Models:
    Capture:
        - SessionState: Capture session lifecycle states
        - CaptureModeKind: Selectable capture policies
        - CancelReason: Why a session was cancelled

    Analysis:
        - AnalysisResult: Structured analysis output
"""

from snapstream.models.capture import CancelReason, CaptureModeKind, SessionState
from snapstream.models.analysis import AnalysisResult

__all__ = [
    # Capture
    "SessionState",
    "CaptureModeKind",
    "CancelReason",
    # Analysis
    "AnalysisResult",
]
