"""
Request/response models for generation backends.

These models are internal to the backend adapters (Ollama). The pipeline
itself only sees ``generate(prompt) -> str``; the richer response keeps the
metadata adapters record for metrics and debugging.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Standardized generation request sent to a backend adapter.
    """
    model_config = ConfigDict(frozen=True)
    
    prompt: str = Field(..., description="Complete prompt text")
    model: str = Field(..., description="Model name/identifier (e.g., 'qwen2.5:7b')")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2048, ge=1, le=32768, description="Maximum tokens to generate")
    json_mode: bool = Field(default=False, description="Ask the backend for JSON-only output")
    format_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="JSON Schema constraint; takes precedence over json_mode"
    )
    stop_sequences: Optional[list[str]] = Field(default=None, description="Stop sequences for generation")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")


class LLMGenerationResponse(BaseModel):
    """
    Backend response: generated text plus audit metadata.
    """
    model_config = ConfigDict(frozen=True)
    
    content: str = Field(..., description="Generated text")
    model_version: str = Field(..., description="Model that actually answered")
    finish_reason: str = Field(..., description="'stop', 'incomplete', ...")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
    created_at: Optional[str] = Field(default=None, description="ISO timestamp from server")
    
    @property
    def usage_tokens(self) -> Optional[int]:
        if self.prompt_tokens is None or self.completion_tokens is None:
            return None
        return self.prompt_tokens + self.completion_tokens
