"""
Analysis Gateway Factory
========================

Create the analysis gateway selected in configuration.
"""

import logging
from typing import Optional

from snapstream.analysis.gateway import AnalysisGateway, MockAnalysisGateway
from snapstream.analysis.gemini import GeminiAnalysisGateway
from snapstream.analysis.vision import VisionAnalysisGateway
from snapstream.config import Settings, settings as default_settings


logger = logging.getLogger(__name__)


def create_analysis_gateway(settings: Optional[Settings] = None) -> AnalysisGateway:
    """
    Create analysis gateway based on config.

    Fails fast if a cloud backend is requested but its SDK is unavailable.

    Raises:
        ValueError: If the backend name is unknown
        ImportError: If the backend's SDK is not installed
    """
    settings = settings or default_settings
    analysis = settings.analysis
    backend = analysis.backend

    if backend == "mock":
        logger.info("Using MockAnalysisGateway")
        return MockAnalysisGateway()

    elif backend == "gemini":
        logger.info(f"Using GeminiAnalysisGateway: model={analysis.gemini.model}")
        return GeminiAnalysisGateway(
            model=analysis.gemini.model,
            api_key=analysis.gemini.api_key,
            timeout=analysis.timeout_seconds,
        )

    elif backend == "vision":
        logger.info("Using VisionAnalysisGateway")
        return VisionAnalysisGateway(
            credentials_path=analysis.vision.credentials_path,
            timeout=analysis.timeout_seconds,
        )

    else:
        raise ValueError(f"Unknown analysis backend: {backend}")
