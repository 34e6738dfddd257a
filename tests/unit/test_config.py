"""Tests for sketchgeom.config module."""

import pytest
from pydantic import ValidationError

from sketchgeom.config import Settings


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that default values are set correctly."""
        for name in ("LOG_LEVEL", "LOG_FORMAT", "CURVE_SAMPLES", "DEDUPE_PRECISION"):
            monkeypatch.delenv(f"SKETCHGEOM_{name}", raising=False)

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_FORMAT == "console"
        assert settings.CURVE_SAMPLES == 32
        assert settings.DEDUPE_PRECISION == 10

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that prefixed environment variables override defaults."""
        monkeypatch.setenv("SKETCHGEOM_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("SKETCHGEOM_CURVE_SAMPLES", "64")

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.CURVE_SAMPLES == 64

    def test_unprefixed_env_var_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that variables without the prefix are not read."""
        monkeypatch.delenv("SKETCHGEOM_CURVE_SAMPLES", raising=False)
        monkeypatch.setenv("CURVE_SAMPLES", "5")
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )
        assert settings.CURVE_SAMPLES == 32

    def test_log_format_options(self) -> None:
        """Test that LOG_FORMAT accepts valid options only."""
        settings = Settings(
            LOG_FORMAT="json",
            _env_file=None,  # type: ignore[call-arg]
        )
        assert settings.LOG_FORMAT == "json"

        with pytest.raises(ValidationError):
            Settings(
                LOG_FORMAT="xml",  # type: ignore[arg-type]
                _env_file=None,  # type: ignore[call-arg]
            )

    def test_curve_samples_lower_bound(self) -> None:
        """Test that a curve needs at least its two endpoints."""
        with pytest.raises(ValidationError, match="greater than or equal to 2"):
            Settings(
                CURVE_SAMPLES=1,
                _env_file=None,  # type: ignore[call-arg]
            )

    def test_fixture_settings(self, test_settings: Settings) -> None:
        """Test that settings can be created with custom values."""
        assert test_settings.LOG_LEVEL == "DEBUG"
        assert test_settings.CURVE_SAMPLES == 8
