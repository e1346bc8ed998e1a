"""
Protective pipeline: configuration and orchestration.

- config.py: RunConfiguration (immutable) and PipelineBuilder (fluent)
- orchestrator.py: Pipeline.run (pre-checks, generate, post-checks, decode, retry)
"""

from railguard.pipeline.config import PipelineBuilder, RunConfiguration
from railguard.pipeline.orchestrator import Pipeline

__all__ = [
    "Pipeline",
    "PipelineBuilder",
    "RunConfiguration",
]
