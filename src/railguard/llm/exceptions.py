"""
Exceptions raised by generation backend adapters.

The pipeline wraps any of these in GenerationFailure, which is retryable.
The subclasses exist so callers inspecting ``GenerationFailure.cause`` can
tell a slow server from a missing model without parsing messages.
"""


class LLMClientError(Exception):
    """
    Base exception for all generation backend errors.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LLMConnectionError(LLMClientError):
    """
    Unable to reach the inference server (DNS, refused connection, reset).
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """
    The backend request exceeded the adapter's HTTP timeout.

    Deliberately not a builtin TimeoutError: a slow backend is a transient
    fault worth retrying, unlike the pipeline's own run deadline.
    """
    pass


class LLMGenerationError(LLMClientError):
    """
    The server answered but generation failed (5xx, empty or unparsable body).
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """
    The requested model is not installed on the server (HTTP 404).
    """
    pass
