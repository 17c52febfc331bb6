"""
Analysis Gateway
================

Contract between the stitched composite and an external analysis service.

This module provides the AnalysisGateway protocol, the shared response
parser and MockAnalysisGateway for offline use.

Wire contract:
    request  = one PNG image
    response = JSON object with optional string fields
               "summary", "text", "code" ("description" is accepted as
               a synonym of "summary")
    A response that is not a JSON object is returned as {"summary": raw}.

Design Rules:
    - One opaque async call per analysis, no retries, no partial results
    - Every backend failure surfaces as AnalysisGatewayError
    - Gateways never touch capture or stitch state
"""

import json
import logging
from typing import Optional, Protocol

from snapstream.models.analysis import AnalysisResult
from snapstream.stitch.engine import CompositeImage


logger = logging.getLogger(__name__)


NO_ANALYSIS_SUMMARY = "No analysis generated."


class AnalysisGatewayError(Exception):
    """Raised when an analysis call fails or times out."""
    pass


class AnalysisGateway(Protocol):
    """
    Protocol for analysis backends.

    Implemented by:
        - MockAnalysisGateway (offline, deterministic)
        - GeminiAnalysisGateway (google-genai)
        - VisionAnalysisGateway (google-cloud-vision OCR)
    """

    async def analyze(self, image: CompositeImage) -> AnalysisResult:
        """
        Analyze a stitched composite.

        Raises:
            AnalysisGatewayError: If the backend call fails
        """
        ...


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def parse_analysis_response(raw: Optional[str]) -> AnalysisResult:
    """
    Parse a backend response body into an AnalysisResult.

    Args:
        raw: Response text from the analysis service

    Returns:
        AnalysisResult. Non-JSON text becomes the summary; an empty
        response yields a fixed "no analysis" summary.
    """
    if raw is None or not raw.strip():
        return AnalysisResult(summary=NO_ANALYSIS_SUMMARY)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Analysis response is not JSON, using raw text as summary")
        return AnalysisResult(summary=raw)

    if not isinstance(data, dict):
        return AnalysisResult(summary=raw)

    return AnalysisResult(
        summary=_as_text(data.get("summary") or data.get("description")),
        text=_as_text(data.get("text")),
        code=_as_text(data.get("code")),
    )


class MockAnalysisGateway:
    """
    Deterministic offline analysis backend.

    Describes the composite's size without calling any service.
    """

    def __init__(self) -> None:
        self._call_count: int = 0
        logger.info("MockAnalysisGateway initialized")

    async def analyze(self, image: CompositeImage) -> AnalysisResult:
        self._call_count += 1
        return AnalysisResult(
            summary=(
                f"Stitched screenshot of {len(image.frame_ids)} frames, "
                f"{image.width}x{image.height} pixels."
            ),
        )

    def get_metrics(self) -> dict:
        return {"call_count": self._call_count}
