"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration
tests. The test doubles themselves live in tests/fixtures/.
"""

import pytest

from railguard.config import Settings
from tests.fixtures.doubles import JSONCheck, KeywordCheck, ScriptedClient


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with fast retries and no run timeout.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MAX_ATTEMPTS = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="Railguard (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Retry & Backoff ===
        MAX_ATTEMPTS=3,
        INITIAL_DELAY_SECONDS=0.0,
        MAX_DELAY_SECONDS=0.0,
        BACKOFF_MULTIPLIER=2.0,
        JITTER_FRACTION=0.0,

        # === Pipeline ===
        RUN_TIMEOUT_SECONDS=0.0,
        STRICT_SCHEMA=True,

        # === Ollama ===
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="qwen2.5:7b",
        OLLAMA_TIMEOUT=60,
    )


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient: scripted_client('out1', ValueError('x'), ...)."""
    return ScriptedClient


@pytest.fixture
def injection_check() -> KeywordCheck:
    """Pre-check rejecting prompt-injection phrases."""
    return KeywordCheck("ignore previous", name="injection")


@pytest.fixture
def json_check() -> JSONCheck:
    return JSONCheck()
