"""
SnapStream Configuration
========================

This module handles configuration loading for SnapStream.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SNAPSTREAM_TIMER_PERIOD       -> capture.timer_period_seconds
    SNAPSTREAM_MONITOR            -> capture.monitor
    SNAPSTREAM_SOURCE_BACKEND     -> source.backend
    SNAPSTREAM_STREAM_URL         -> source.stream_url
    SNAPSTREAM_ANALYSIS_BACKEND   -> analysis.backend
    SNAPSTREAM_GEMINI_MODEL       -> analysis.gemini.model
    GEMINI_API_KEY / API_KEY      -> analysis.gemini.api_key
    SNAPSTREAM_VISION_CREDENTIALS -> analysis.vision.credentials_path
    SNAPSTREAM_LOG_LEVEL          -> logging.level

Example:
    from snapstream.config import settings

    print(settings.capture.timer_period_seconds)
    print(settings.analysis.backend)
"""

import os
import logging
from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class CaptureConfig(BaseModel):
    """Capture session configuration."""

    timer_period_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Interval between automatic captures in timer mode",
    )
    show_cursor: bool = Field(
        default=True,
        description="Request the cursor to be visible in captured frames",
    )
    monitor: int = Field(
        default=1,
        ge=0,
        description="mss monitor index (0 = all monitors combined)",
    )


class SourceConfig(BaseModel):
    """Video source backend configuration."""

    backend: str = Field(
        default="display",
        description="Video source backend: 'display' or 'stream'",
    )
    stream_url: str = Field(
        default="ws://localhost:8000/ws/stream",
        description="WebSocket URL of a remote screen-share relay",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for opening the remote stream connection",
    )


class StitchConfig(BaseModel):
    """Stitch engine configuration."""

    background: Tuple[int, int, int] = Field(
        default=(0, 0, 0),
        description="Canvas background colour (BGR)",
    )
    png_compression: int = Field(
        default=3,
        ge=0,
        le=9,
        description="PNG compression level for frames and composites",
    )


class GeminiConfig(BaseModel):
    """Gemini analysis backend configuration."""

    model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    api_key: Optional[str] = Field(default=None, description="Gemini API key")


class VisionConfig(BaseModel):
    """Google Cloud Vision analysis backend configuration."""

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to service account JSON (None = default credentials)",
    )


class AnalysisConfig(BaseModel):
    """Analysis gateway configuration."""

    backend: str = Field(
        default="mock",
        description="Analysis backend: 'mock', 'gemini' or 'vision'",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single analysis call",
    )
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    vision: VisionConfig = Field(default_factory=VisionConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for SnapStream.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    stitch: StitchConfig = Field(default_factory=StitchConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path.home() / ".config" / "snapstream" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Capture settings
    if env_period := os.environ.get("SNAPSTREAM_TIMER_PERIOD"):
        config_data.setdefault("capture", {})["timer_period_seconds"] = float(env_period)
    if env_monitor := os.environ.get("SNAPSTREAM_MONITOR"):
        config_data.setdefault("capture", {})["monitor"] = int(env_monitor)

    # Source settings
    if env_source := os.environ.get("SNAPSTREAM_SOURCE_BACKEND"):
        config_data.setdefault("source", {})["backend"] = env_source
    if env_url := os.environ.get("SNAPSTREAM_STREAM_URL"):
        config_data.setdefault("source", {})["stream_url"] = env_url

    # Analysis settings
    if env_backend := os.environ.get("SNAPSTREAM_ANALYSIS_BACKEND"):
        config_data.setdefault("analysis", {})["backend"] = env_backend
    if env_model := os.environ.get("SNAPSTREAM_GEMINI_MODEL"):
        config_data.setdefault("analysis", {}).setdefault("gemini", {})["model"] = env_model
    if env_key := os.environ.get("GEMINI_API_KEY"):
        config_data.setdefault("analysis", {}).setdefault("gemini", {})["api_key"] = env_key
    elif env_key := os.environ.get("API_KEY"):
        config_data.setdefault("analysis", {}).setdefault("gemini", {})["api_key"] = env_key
    if env_creds := os.environ.get("SNAPSTREAM_VISION_CREDENTIALS"):
        config_data.setdefault("analysis", {}).setdefault("vision", {})["credentials_path"] = env_creds

    # Logging settings
    if env_log := os.environ.get("SNAPSTREAM_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Loaded on import; host applications call setup_logging(settings) themselves
settings = load_config()
