"""
Source Provider Factory
=======================

Build the video source provider selected in configuration.

A provider is an async callable taking SourceConstraints and returning an
acquired VideoSource, or raising SourceAcquisitionError.
"""

import logging
from functools import partial
from typing import Awaitable, Callable, Optional

from snapstream.capture.display import acquire_display_stream
from snapstream.capture.remote import acquire_remote_stream
from snapstream.capture.source import SourceConstraints, VideoSource
from snapstream.config import Settings, settings as default_settings


logger = logging.getLogger(__name__)


SourceProvider = Callable[[SourceConstraints], Awaitable[VideoSource]]


def create_source_provider(settings: Optional[Settings] = None) -> SourceProvider:
    """
    Create the source provider for the configured backend.

    Raises:
        ValueError: If the backend name is unknown
    """
    settings = settings or default_settings
    backend = settings.source.backend

    if backend == "display":
        logger.info("Using display video source (mss)")
        return acquire_display_stream

    elif backend == "stream":
        logger.info(f"Using remote video source: {settings.source.stream_url}")
        return partial(
            acquire_remote_stream,
            settings.source.stream_url,
            open_timeout=settings.source.open_timeout_seconds,
        )

    else:
        raise ValueError(f"Unknown video source backend: {backend}")


def default_constraints(settings: Optional[Settings] = None) -> SourceConstraints:
    """Constraints derived from the capture configuration."""
    settings = settings or default_settings
    return SourceConstraints(
        cursor=settings.capture.show_cursor,
        audio=False,
        monitor=settings.capture.monitor,
    )
