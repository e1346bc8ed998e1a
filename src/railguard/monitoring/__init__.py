"""
Prometheus metrics for generation backends.
"""

from railguard.monitoring.metrics import (
    llm_latency_seconds,
    llm_requests_total,
    llm_tokens_total,
)

__all__ = [
    "llm_latency_seconds",
    "llm_requests_total",
    "llm_tokens_total",
]
