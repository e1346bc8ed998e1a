"""
Failure classification and retry eligibility.

The pipeline consults ``is_retryable`` once per failed attempt to decide
whether to back off and try again or to stop immediately.

Rules:
- Cancellation and deadline conditions are never retried, wherever in the
  cause chain they appear.
- Pre-check rejections are never retried: the prompt would not change.
- Aggregate and configuration failures are terminal.
- Generation, post-check and structural failures are retried, since the
  generated output is non-deterministic.
"""

import asyncio
from typing import Iterator

from railguard.exceptions import (
    ConfigurationError,
    PreCheckFailure,
    RailguardError,
    RetriesExhausted,
    RunTimeout,
)
from railguard.models.enums import FailureKind

_TERMINAL = (PreCheckFailure, RetriesExhausted, RunTimeout, ConfigurationError)


def iter_causes(error: BaseException) -> Iterator[BaseException]:
    """Yield ``error`` followed by every exception in its cause chain."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if isinstance(current, RailguardError) and current.cause is not None:
            current = current.cause
        else:
            current = current.__cause__


def is_interruption(error: BaseException) -> bool:
    """True if cancellation or a deadline appears anywhere in the chain."""
    return any(
        isinstance(exc, (asyncio.CancelledError, TimeoutError))
        for exc in iter_causes(error)
    )


def classify(error: BaseException) -> FailureKind:
    """
    Map any exception to its failure kind.

    Cancellation and deadlines are reported as such even when they arrive
    wrapped in a stage failure.
    """
    if isinstance(error, RunTimeout):
        return FailureKind.DEADLINE_EXCEEDED
    for exc in iter_causes(error):
        if isinstance(exc, asyncio.CancelledError):
            return FailureKind.CANCELLED
        if isinstance(exc, TimeoutError):
            return FailureKind.DEADLINE_EXCEEDED
    if isinstance(error, RailguardError):
        return error.kind
    return FailureKind.UNKNOWN


def is_retryable(error: BaseException | None) -> bool:
    """
    Decide whether a failed attempt may be retried.

    Args:
        error: The wrapped failure of the attempt (None means no failure)

    Returns:
        True if another attempt could succeed
    """
    if error is None:
        return False
    if is_interruption(error):
        return False
    if isinstance(error, _TERMINAL):
        return False
    return True
