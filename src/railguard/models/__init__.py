"""
Data models for Railguard.

Includes:
- Enums (FailureKind, PipelinePhase)
- Run results (RunResult, RunMetadata)
- Backend models (LLMGenerationRequest, LLMGenerationResponse)
"""

from railguard.models.enums import FailureKind, PipelinePhase
from railguard.models.results import RunMetadata, RunResult
from railguard.models.llm_models import (
    LLMGenerationRequest,
    LLMGenerationResponse,
)

__all__ = [
    # Enums
    "FailureKind",
    "PipelinePhase",
    # Results
    "RunMetadata",
    "RunResult",
    # Backend models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
