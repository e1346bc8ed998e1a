"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

from unittest.mock import AsyncMock, patch

import pytest

from railguard.llm.base_client import BaseLLMClient
from railguard.retry.policy import RetryPolicy


@pytest.fixture
def mock_client():
    """AsyncMock generation client returning a fixed JSON document."""
    mock = AsyncMock(spec=BaseLLMClient)
    mock.generate = AsyncMock(return_value='{"name": "Ada", "age": 36}')
    return mock


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Three attempts without any waiting."""
    return RetryPolicy.create(max_attempts=3, initial_delay=0.0, max_delay=0.0, jitter=0.0)


@pytest.fixture
def backoff_spy():
    """Patch RetryPolicy.backoff so waits are counted instead of slept."""
    with patch.object(RetryPolicy, "backoff", new=AsyncMock(return_value=None)) as spy:
        yield spy
