"""
Configuration Tests
===================

YAML loading, environment overrides and validation.
"""

import pytest
from pydantic import ValidationError

from snapstream.config import Settings, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove configuration variables inherited from the environment."""
    for name in (
        "SNAPSTREAM_TIMER_PERIOD",
        "SNAPSTREAM_MONITOR",
        "SNAPSTREAM_SOURCE_BACKEND",
        "SNAPSTREAM_STREAM_URL",
        "SNAPSTREAM_ANALYSIS_BACKEND",
        "SNAPSTREAM_GEMINI_MODEL",
        "GEMINI_API_KEY",
        "API_KEY",
        "SNAPSTREAM_VISION_CREDENTIALS",
        "SNAPSTREAM_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for default values and validation."""

    def test_defaults(self):
        """Verify default settings values."""
        settings = Settings()
        assert settings.capture.timer_period_seconds == 2.0
        assert settings.stitch.background == (0, 0, 0)
        assert settings.analysis.backend == "mock"
        assert settings.analysis.gemini.model == "gemini-2.5-flash"

    def test_timer_period_must_be_positive(self):
        """Verify a zero timer period is rejected."""
        with pytest.raises(ValidationError):
            Settings.model_validate({"capture": {"timer_period_seconds": 0}})

    def test_png_compression_range(self):
        """Verify PNG compression outside 0-9 is rejected."""
        with pytest.raises(ValidationError):
            Settings.model_validate({"stitch": {"png_compression": 12}})


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml_file(self, tmp_path):
        """Verify values are read from a YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "capture:\n"
            "  timer_period_seconds: 0.5\n"
            "source:\n"
            "  backend: stream\n"
            "  stream_url: ws://relay:9000/ws\n"
        )

        settings = load_config(str(path))

        assert settings.capture.timer_period_seconds == 0.5
        assert settings.source.backend == "stream"
        assert settings.source.stream_url == "ws://relay:9000/ws"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        """Verify environment variables take precedence over YAML."""
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  backend: vision\n")
        monkeypatch.setenv("SNAPSTREAM_ANALYSIS_BACKEND", "gemini")
        monkeypatch.setenv("SNAPSTREAM_TIMER_PERIOD", "3")
        monkeypatch.setenv("API_KEY", "fallback-key")

        settings = load_config(str(path))

        assert settings.analysis.backend == "gemini"
        assert settings.capture.timer_period_seconds == 3.0
        assert settings.analysis.gemini.api_key == "fallback-key"

    def test_gemini_key_preferred(self, tmp_path, monkeypatch):
        """Verify GEMINI_API_KEY wins over API_KEY."""
        monkeypatch.setenv("GEMINI_API_KEY", "primary")
        monkeypatch.setenv("API_KEY", "fallback")

        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.analysis.gemini.api_key == "primary"
