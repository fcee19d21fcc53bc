"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- Sample multipart/related bodies as streams
- Mock settings/configuration
- Output buffers for writer tests
"""

import io
import os

import pytest

from mime_related.config import Settings
from .fixtures.messages import (
    PARAMS_WITH_START,
    PARAMS_WITHOUT_START,
    SAMPLE_BODIES,
)


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create mock settings for testing with safe defaults.

    Returns:
        Settings instance with test configuration
    """
    return Settings(
        log_level="INFO",
        log_json=False,  # Easier to read in tests
        read_chunk_size=4,
    )


@pytest.fixture
def params_with_start() -> dict:
    """Content-Type parameters naming a@b.c as the root."""
    return dict(PARAMS_WITH_START)


@pytest.fixture
def params_without_start() -> dict:
    """Content-Type parameters without a start parameter."""
    return dict(PARAMS_WITHOUT_START)


@pytest.fixture
def root_first_stream() -> io.BytesIO:
    """
    Get a body whose root part comes first.

    Returns:
        BytesIO over the body
    """
    return io.BytesIO(SAMPLE_BODIES["root_first"])


@pytest.fixture
def moved_root_stream() -> io.BytesIO:
    """
    Get a body whose root part (a@b.c) comes second.

    Returns:
        BytesIO over the body
    """
    return io.BytesIO(SAMPLE_BODIES["moved_root"])


@pytest.fixture
def duplicate_root_stream() -> io.BytesIO:
    """
    Get a body where two parts carry the start Content-ID.

    Returns:
        BytesIO over the body
    """
    return io.BytesIO(SAMPLE_BODIES["duplicate_root"])


@pytest.fixture
def output_buffer() -> io.BytesIO:
    """Empty buffer receiving writer output."""
    return io.BytesIO()


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config):
    """
    Configure pytest with custom markers and settings.
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (write then read back)"
    )
