"""Prometheus metrics recorded by generation backend adapters.

The pipeline core records nothing; these are collaborator-side metrics,
exposed by whatever host process scrapes the default registry.
"""

from prometheus_client import Counter, Histogram

llm_requests_total = Counter(
    "railguard_llm_requests_total",
    "Generation requests by model and outcome",
    ["model", "outcome"],
)
"""
Labels:
- model: Model name requested
- outcome: success, timeout, connection_error, model_not_available, generation_error
"""

llm_latency_seconds = Histogram(
    "railguard_llm_latency_seconds",
    "Generation latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

llm_tokens_total = Counter(
    "railguard_llm_tokens_total",
    "Tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Labels:
- token_type: prompt (input tokens), completion (output tokens)
"""
