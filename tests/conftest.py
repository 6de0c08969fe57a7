"""Shared fixtures for marble-sdk tests."""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture
def no_delay():
    """Replace the executor's retry delay; yields the AsyncMock."""
    with patch("marble_sdk.core.executor.delay", new_callable=AsyncMock) as mock_delay:
        yield mock_delay
