"""
Ollama generation client.

Communicates with the Ollama API using httpx AsyncClient:
- POST /api/generate (non-streaming) for generation
- GET /api/tags for health checks and model listing

The client makes exactly one HTTP request per generate() call. Retrying is
left to the pipeline's retry policy so attempts are counted in one place.
"""

import json
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from railguard.config import Settings
from railguard.llm.base_client import BaseLLMClient
from railguard.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from railguard.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from railguard.monitoring.metrics import (
    llm_latency_seconds,
    llm_requests_total,
    llm_tokens_total,
)


logger = structlog.get_logger(__name__)


class OllamaClient(BaseLLMClient):
    """
    Ollama-backed generation client.

    ``generate(prompt)`` applies the defaults given at construction
    (model, temperature, max tokens, JSON mode, optional JSON Schema) and
    returns only the text. ``complete(request)`` takes a full request and
    returns the response with token and latency metadata.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen2.5:7b",
        timeout: float = 60,
        temperature: float = 0.1,
        max_tokens: int = 2048,
        json_mode: bool = True,
        format_schema: Optional[Dict[str, Any]] = None,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            model: Default model for generate()
            timeout: HTTP timeout in seconds
            temperature: Default sampling temperature
            max_tokens: Default generation limit (num_predict)
            json_mode: Ask Ollama for JSON-only output
            format_schema: JSON Schema constraint (overrides json_mode)
            connection_limits: httpx pool limits
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.json_mode = json_mode
        self.format_schema = format_schema
        self._connection_limits = connection_limits or httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "Ollama client initialized",
            base_url=self.base_url,
            model=model,
            timeout=timeout,
            json_mode=json_mode,
            has_schema=format_schema is not None,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "OllamaClient":
        options: Dict[str, Any] = {
            "base_url": settings.OLLAMA_BASE_URL,
            "model": settings.OLLAMA_MODEL,
            "timeout": settings.OLLAMA_TIMEOUT,
            "temperature": settings.LLM_TEMPERATURE,
            "max_tokens": settings.LLM_MAX_TOKENS,
            "json_mode": settings.OLLAMA_JSON_MODE,
        }
        options.update(overrides)
        return cls(**options)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def build_request(self, prompt: str) -> LLMGenerationRequest:
        return LLMGenerationRequest(
            prompt=prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=self.json_mode,
            format_schema=self.format_schema,
        )

    @staticmethod
    def _build_payload(request: LLMGenerationRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        if request.seed is not None:
            payload["options"]["seed"] = request.seed
        if request.stop_sequences:
            payload["options"]["stop"] = request.stop_sequences

        # Ollama accepts either a JSON Schema object or the string "json"
        if request.format_schema:
            payload["format"] = request.format_schema
        elif request.json_mode:
            payload["format"] = "json"
        return payload

    async def generate(self, prompt: str) -> str:
        response = await self.complete(self.build_request(prompt))
        return response.content

    async def complete(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Send one generation request to POST /api/generate.

        Response body:
        {
            "model": "qwen2.5:7b",
            "created_at": "2026-02-19T...",
            "response": "...",
            "done": true,
            "prompt_eval_count": 50,
            "eval_count": 150
        }

        Raises:
            LLMTimeoutError: HTTP timeout
            LLMConnectionError: Server unreachable
            LLMModelNotAvailableError: Model not found (404)
            LLMGenerationError: Any other server-side failure
        """
        start_time = time.perf_counter()
        payload = self._build_payload(request)

        logger.debug(
            "Sending generation request to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            format=payload.get("format") if isinstance(payload.get("format"), str) else "schema",
        )

        try:
            client = await self._get_client()
            response = await client.post("/api/generate", json=payload)
            response.raise_for_status()
            response_data = response.json()
        except httpx.TimeoutException as e:
            self._record_failure(request.model, "timeout", start_time)
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "model": request.model},
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 404:
                self._record_failure(request.model, "model_not_available", start_time)
                raise LLMModelNotAvailableError(
                    f"Model not found: {request.model}",
                    details={"model": request.model, "status": status_code},
                ) from e
            self._record_failure(request.model, "generation_error", start_time)
            raise LLMGenerationError(
                f"Ollama returned HTTP {status_code}",
                details={"status": status_code, "error": e.response.text[:500]},
            ) from e
        except httpx.TransportError as e:
            self._record_failure(request.model, "connection_error", start_time)
            raise LLMConnectionError(
                f"Network error: {e}",
                details={"error_type": type(e).__name__, "base_url": self.base_url},
            ) from e
        except json.JSONDecodeError as e:
            self._record_failure(request.model, "generation_error", start_time)
            raise LLMGenerationError(
                "Invalid JSON response from Ollama",
                details={"parse_error": str(e)},
            ) from e

        content = response_data.get("response", "")
        if not content:
            self._record_failure(request.model, "generation_error", start_time)
            raise LLMGenerationError(
                "Empty response from Ollama",
                details={"model": request.model, "done": response_data.get("done")},
            )

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        model_version = response_data.get("model", request.model)
        prompt_tokens = response_data.get("prompt_eval_count")
        completion_tokens = response_data.get("eval_count")

        llm_requests_total.labels(model=request.model, outcome="success").inc()
        llm_latency_seconds.labels(model=model_version, success="true").observe(latency_ms / 1000.0)
        if prompt_tokens:
            llm_tokens_total.labels(model=model_version, token_type="prompt").inc(prompt_tokens)
        if completion_tokens:
            llm_tokens_total.labels(model=model_version, token_type="completion").inc(completion_tokens)

        logger.info(
            "Ollama generation successful",
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            finish_reason="stop" if response_data.get("done") else "incomplete",
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
            created_at=response_data.get("created_at"),
        )

    def _record_failure(self, model: str, outcome: str, start_time: float) -> None:
        elapsed = time.perf_counter() - start_time
        llm_requests_total.labels(model=model, outcome=outcome).inc()
        llm_latency_seconds.labels(model=model, success="false").observe(elapsed)
        logger.warning("Ollama generation failed", model=model, outcome=outcome, elapsed_s=round(elapsed, 3))

    async def health_check(self) -> bool:
        """Check Ollama server health via GET /api/tags."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def list_models(self) -> list[str]:
        """
        List installed models via GET /api/tags.

        Raises:
            LLMConnectionError: Server unreachable or error status
        """
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=10.0)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise LLMConnectionError(
                f"Failed to list models: {e}",
                details={"error_type": type(e).__name__},
            ) from e
        return [m["name"] for m in data.get("models", [])]

    async def close(self) -> None:
        """Close the pooled HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"model={self.model}, "
            f"timeout={self.timeout}s)"
        )
