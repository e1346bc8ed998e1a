"""
Railguard: protective execution pipeline for text generation calls.

Wraps any generation client with:
- Pre-checks on the prompt (terminal on rejection)
- Post-checks on the generated text
- Strict structural decoding into a pydantic model
- Retry with exponential backoff and jitter
- An overall run timeout and cooperative cancellation

Architecture: asyncio orchestrator + pluggable checks + pydantic schema enforcement
"""

from railguard.exceptions import (
    CheckRejected,
    ConfigurationError,
    GenerationFailure,
    PostCheckFailure,
    PreCheckFailure,
    RailguardError,
    RetriesExhausted,
    RunTimeout,
    StructuralFailure,
)
from railguard.models import FailureKind, RunMetadata, RunResult
from railguard.pipeline import Pipeline, PipelineBuilder, RunConfiguration
from railguard.retry import RetryPolicy, classify, is_retryable
from railguard.schema import StructuralDescriptor

__version__ = "0.1.0"

__all__ = [
    "CheckRejected",
    "ConfigurationError",
    "FailureKind",
    "GenerationFailure",
    "Pipeline",
    "PipelineBuilder",
    "PostCheckFailure",
    "PreCheckFailure",
    "RailguardError",
    "RetriesExhausted",
    "RetryPolicy",
    "RunConfiguration",
    "RunMetadata",
    "RunResult",
    "RunTimeout",
    "StructuralDescriptor",
    "StructuralFailure",
    "classify",
    "is_retryable",
]
