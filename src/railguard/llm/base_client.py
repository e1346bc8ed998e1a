"""
Generation client contract and adapters.

The pipeline needs exactly one operation from a backend:
``async generate(prompt) -> str``. Any object providing it can be used;
BaseLLMClient is the base for adapters that also manage connections,
and FunctionClient wraps a plain coroutine function.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Protocol, runtime_checkable
import inspect

import structlog


logger = structlog.get_logger(__name__)


@runtime_checkable
class GenerationClient(Protocol):
    """Anything that turns a prompt into text, honoring task cancellation."""

    async def generate(self, prompt: str) -> str:
        ...


class BaseLLMClient(ABC):
    """
    Abstract base class for generation backends.
    
    Responsibilities:
    - Send a prompt to the inference server and return the generated text
    - Map transport errors to LLMClientError subclasses
    - Release connections on close()
    
    Does NOT handle:
    - Input/output checks (the pipeline's pre/post-check slots)
    - Retrying failed generations (the pipeline's retry policy)
    """
    
    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate text for ``prompt``.
        
        Must return promptly when the calling task is cancelled.
        
        Raises:
            LLMClientError: Backend or transport failure
        """
        pass
    
    async def health_check(self) -> bool:
        """
        Lightweight reachability check. Never raises.
        
        Default implementation is optimistic.
        """
        return True
    
    async def close(self) -> None:
        """Release connections. Default implementation does nothing."""
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)
    
    async def __aenter__(self):
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class FunctionClient(BaseLLMClient):
    """
    Adapter that lets a coroutine function act as a generation client.
    
    Useful for tests and for wrapping third-party SDK calls:
    
        client = FunctionClient(lambda prompt: sdk.complete(prompt))
    """
    
    def __init__(self, func: Callable[[str], Awaitable[str]]):
        if not callable(func):
            raise TypeError(f"client function must be callable, got {type(func).__name__}")
        self.func = func
    
    async def generate(self, prompt: str) -> str:
        result = self.func(prompt)
        if inspect.isawaitable(result):
            result = await result
        return result
    
    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        return f"{self.__class__.__name__}(func={name})"
