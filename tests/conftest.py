"""
Test configuration for feedback client tests.

Provides fixtures for scripted feedback responses and a recording sleep so
poll sequences run without waiting on wall-clock time.
"""
# Set test environment variables BEFORE any imports that might use them
import os
os.environ.setdefault("FEEDBACK_API_BASE_URL", "http://test-backend:5001/api")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from unittest.mock import AsyncMock, MagicMock

from feedback_client.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_sleep():
    """Replacement for asyncio.sleep that returns immediately and records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_client():
    """Build a mock interview client whose get_feedback follows a script."""
    def _make(*responses, return_value=None):
        client = MagicMock()
        if responses:
            client.get_feedback = AsyncMock(side_effect=list(responses))
        else:
            client.get_feedback = AsyncMock(return_value=return_value)
        client.submit_answer = AsyncMock()
        return client
    return _make


@pytest.fixture
def updates():
    """Collects every FeedbackResult delivered to on_update."""
    class Recorder(list):
        def __call__(self, result):
            self.append(result)

        @property
        def statuses(self):
            return [r.status for r in self]

    return Recorder()

