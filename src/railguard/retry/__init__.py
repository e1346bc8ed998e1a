"""
Retry policy and failure classification.

Main Components:
    - RetryPolicy: Immutable attempt budget + exponential backoff with jitter
    - is_retryable: Decides whether a failed attempt may be retried
    - classify: Maps any exception to its FailureKind

Usage:
    >>> from railguard.retry import RetryPolicy
    >>> policy = RetryPolicy.create(max_attempts=5, initial_delay=0.2)
    >>> policy.delay(1)  # ~0.2s +/- 10%
"""

from railguard.retry.classifier import classify, is_interruption, is_retryable
from railguard.retry.policy import RetryPolicy

__all__ = [
    "RetryPolicy",
    "classify",
    "is_interruption",
    "is_retryable",
]
