"""Shared pytest fixtures and configuration."""

from collections.abc import Iterator

import pytest

from sketchgeom.config import Settings
from sketchgeom.utils.logging import clear_operation_context, configure_logging


@pytest.fixture(autouse=True)
def reset_logging_context() -> Iterator[None]:
    """Reset operation context between tests."""
    clear_operation_context()
    yield
    clear_operation_context()


@pytest.fixture
def test_settings() -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        CURVE_SAMPLES=8,
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield
