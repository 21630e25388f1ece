"""Shared fixtures: test configuration and a mocked HTTP session."""

from unittest.mock import MagicMock

import pytest

from lumina.config import StudioConfig


@pytest.fixture
def config():
    return StudioConfig(
        replicate_api_token="r8_test",
        gemini_api_key="gm_test",
        max_poll_attempts=60,
        poll_interval_s=1.0,
    )


@pytest.fixture
def session():
    return MagicMock()
