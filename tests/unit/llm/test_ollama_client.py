"""
Unit tests for OllamaClient.

The HTTP layer is replaced with httpx.MockTransport, so no server is needed.
"""

import json

import httpx
import pytest
from prometheus_client import REGISTRY

from railguard.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from railguard.llm.ollama_client import OllamaClient
from railguard.models.llm_models import LLMGenerationRequest


def make_client(handler, **kwargs) -> OllamaClient:
    """OllamaClient whose requests are answered by ``handler``."""
    kwargs.setdefault("model", "test-model")
    return OllamaClient(transport=httpx.MockTransport(handler), **kwargs)


def ok_response(content: str = '{"name": "Ada"}', **extra) -> httpx.Response:
    body = {
        "model": "test-model",
        "created_at": "2026-02-19T10:00:00Z",
        "response": content,
        "done": True,
        "prompt_eval_count": 12,
        "eval_count": 7,
    }
    body.update(extra)
    return httpx.Response(200, json=body)


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


# ============================================================================
# Payload
# ============================================================================


class TestPayload:
    """Test suite for request payload construction."""

    def test_json_mode_payload(self):
        request = LLMGenerationRequest(prompt="p", model="m", json_mode=True, temperature=0.3, max_tokens=64)

        payload = OllamaClient._build_payload(request)

        assert payload == {
            "model": "m",
            "prompt": "p",
            "stream": False,
            "options": {"temperature": 0.3, "num_predict": 64},
            "format": "json",
        }

    def test_schema_overrides_json_mode(self):
        schema = {"type": "object", "properties": {"name": {"type": "string"}}}
        request = LLMGenerationRequest(prompt="p", model="m", json_mode=True, format_schema=schema)

        assert OllamaClient._build_payload(request)["format"] == schema

    def test_plain_text_has_no_format(self):
        request = LLMGenerationRequest(prompt="p", model="m", json_mode=False)

        assert "format" not in OllamaClient._build_payload(request)

    def test_seed_and_stop_sequences(self):
        request = LLMGenerationRequest(prompt="p", model="m", seed=42, stop_sequences=["\n\n"])

        options = OllamaClient._build_payload(request)["options"]

        assert options["seed"] == 42
        assert options["stop"] == ["\n\n"]

    def test_build_request_uses_defaults(self):
        client = OllamaClient(model="m", temperature=0.5, max_tokens=128, json_mode=False)

        request = client.build_request("hello")

        assert (request.model, request.temperature, request.max_tokens, request.json_mode) == (
            "m", 0.5, 128, False,
        )

    def test_from_settings(self, test_settings):
        client = OllamaClient.from_settings(test_settings, model="override")

        assert client.base_url == "http://localhost:11434"
        assert client.model == "override"
        assert client.timeout == 60
        assert client.json_mode is True


# ============================================================================
# Generation
# ============================================================================


@pytest.mark.asyncio
async def test_generate_returns_text():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return ok_response('{"name": "Ada"}')

    async with make_client(handler) as client:
        text = await client.generate("Who?")

    assert text == '{"name": "Ada"}'
    assert captured["path"] == "/api/generate"
    assert captured["body"]["prompt"] == "Who?"
    assert captured["body"]["stream"] is False


@pytest.mark.asyncio
async def test_complete_returns_metadata():
    client = make_client(lambda request: ok_response("hi"))
    before = sample("railguard_llm_tokens_total", model="test-model", token_type="completion")

    response = await client.complete(client.build_request("x"))
    await client.close()

    assert response.content == "hi"
    assert response.model_version == "test-model"
    assert response.finish_reason == "stop"
    assert response.usage_tokens == 19
    assert response.latency_ms >= 0
    assert sample("railguard_llm_tokens_total", model="test-model", token_type="completion") == before + 7


@pytest.mark.asyncio
async def test_single_request_per_generate():
    """Test the adapter never retries on its own."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="boom")

    client = make_client(handler)
    with pytest.raises(LLMGenerationError):
        await client.generate("x")

    assert len(calls) == 1


# ============================================================================
# Error mapping
# ============================================================================


@pytest.mark.asyncio
async def test_timeout_maps_to_llm_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(handler, timeout=3)

    with pytest.raises(LLMTimeoutError) as exc_info:
        await client.generate("x")

    assert exc_info.value.details["timeout"] == 3
    assert not isinstance(exc_info.value, TimeoutError)


@pytest.mark.asyncio
async def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    before = sample("railguard_llm_requests_total", model="test-model", outcome="connection_error")

    with pytest.raises(LLMConnectionError) as exc_info:
        await make_client(handler).generate("x")

    assert exc_info.value.details["error_type"] == "ConnectError"
    assert sample("railguard_llm_requests_total", model="test-model", outcome="connection_error") == before + 1


@pytest.mark.asyncio
async def test_model_not_found():
    client = make_client(lambda request: httpx.Response(404, json={"error": "model not found"}))

    with pytest.raises(LLMModelNotAvailableError) as exc_info:
        await client.generate("x")

    assert exc_info.value.details["status"] == 404


@pytest.mark.asyncio
async def test_server_error_keeps_body_excerpt():
    client = make_client(lambda request: httpx.Response(503, text="overloaded"))

    with pytest.raises(LLMGenerationError) as exc_info:
        await client.generate("x")

    assert exc_info.value.details == {"status": 503, "error": "overloaded"}


@pytest.mark.asyncio
async def test_invalid_json_body():
    client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(LLMGenerationError) as exc_info:
        await client.generate("x")

    assert "Invalid JSON" in exc_info.value.message


@pytest.mark.asyncio
async def test_empty_response():
    client = make_client(lambda request: ok_response(""))

    with pytest.raises(LLMGenerationError) as exc_info:
        await client.generate("x")

    assert exc_info.value.message == "Empty response from Ollama"


# ============================================================================
# Health and models
# ============================================================================


@pytest.mark.asyncio
async def test_health_check():
    def handler(request):
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": []})

    assert await make_client(handler).health_check() is True


@pytest.mark.asyncio
async def test_health_check_never_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert await make_client(handler).health_check() is False


@pytest.mark.asyncio
async def test_list_models():
    client = make_client(
        lambda request: httpx.Response(200, json={"models": [{"name": "a:1"}, {"name": "b:2"}]})
    )

    assert await client.list_models() == ["a:1", "b:2"]


@pytest.mark.asyncio
async def test_list_models_failure():
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(LLMConnectionError):
        await client.list_models()


@pytest.mark.asyncio
async def test_close_is_idempotent():
    client = make_client(lambda request: ok_response())
    await client.generate("x")

    await client.close()
    await client.close()


def test_repr():
    client = OllamaClient(base_url="http://ollama:11434/", model="m", timeout=5)

    assert repr(client) == "OllamaClient(base_url=http://ollama:11434, model=m, timeout=5s)"
