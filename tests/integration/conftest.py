"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Tests against a live Ollama server are skipped if it is not running.
"""

import httpx
import pytest
import pytest_asyncio

OLLAMA_URL = "http://localhost:11434"


@pytest.fixture(scope="session")
def check_ollama():
    """Check if Ollama is available at localhost:11434.

    Skips tests if Ollama is not reachable.
    """
    try:
        response = httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5)
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")
    if response.status_code != 200:
        pytest.skip("Ollama not available (non-200 status)")
    models = [m["name"] for m in response.json().get("models", [])]
    if not models:
        pytest.skip("No models available in Ollama")
    return models


@pytest_asyncio.fixture
async def real_ollama_client(check_ollama):
    """Real OllamaClient using the first installed model.

    Requires Ollama to be running (checked by check_ollama fixture).
    """
    from railguard.llm.ollama_client import OllamaClient

    client = OllamaClient(base_url=OLLAMA_URL, model=check_ollama[0], timeout=60, temperature=0.0)
    yield client
    await client.close()
