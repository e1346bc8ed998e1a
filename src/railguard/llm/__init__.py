"""
Generation client contract and backend adapters.

Components:
- GenerationClient: Protocol the pipeline consumes (async generate(prompt) -> str)
- BaseLLMClient: Abstract base class for backend adapters
- FunctionClient: Wraps a coroutine function as a client
- OllamaClient: Ollama inference server adapter
- exceptions: Backend-specific exceptions
"""

from railguard.llm.base_client import BaseLLMClient, FunctionClient, GenerationClient
from railguard.llm.ollama_client import OllamaClient
from railguard.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)

__all__ = [
    "BaseLLMClient",
    "FunctionClient",
    "GenerationClient",
    "OllamaClient",
    "LLMClientError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMModelNotAvailableError",
    "LLMTimeoutError",
]
