"""
Analysis Module
===============

External analysis of stitched composites.

The core treats analysis as one opaque async call:
analyze(composite) -> AnalysisResult. Backends are pluggable.

Components:
    - AnalysisGateway: Protocol for analysis backends
    - MockAnalysisGateway: Deterministic offline backend
    - GeminiAnalysisGateway: Gemini multimodal model (google-genai)
    - VisionAnalysisGateway: Google Cloud Vision OCR
    - create_analysis_gateway: Config-driven factory
"""

from snapstream.analysis.gateway import (
    AnalysisGateway,
    AnalysisGatewayError,
    MockAnalysisGateway,
    parse_analysis_response,
)
from snapstream.analysis.gemini import GeminiAnalysisGateway
from snapstream.analysis.vision import VisionAnalysisGateway
from snapstream.analysis.factory import create_analysis_gateway
from snapstream.models.analysis import AnalysisResult


__all__ = [
    "AnalysisGateway",
    "AnalysisGatewayError",
    "AnalysisResult",
    "GeminiAnalysisGateway",
    "MockAnalysisGateway",
    "VisionAnalysisGateway",
    "create_analysis_gateway",
    "parse_analysis_response",
]
