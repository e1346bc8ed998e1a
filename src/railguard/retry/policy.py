"""
Retry policy: attempt budget and exponential backoff with jitter.

Delay for attempt ``a`` (0-indexed, only consulted for a >= 1):

    base  = min(max_delay, initial_delay * multiplier ** (a - 1))
    delay = base +/- uniform(jitter * base)

Attempt 0 never waits, and a zero delay short-circuits the sleep entirely.
Durations are seconds (float), matching asyncio.sleep.
"""

import asyncio
import random
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from railguard.config import Settings
from railguard.exceptions import ConfigurationError


class RetryPolicy(BaseModel):
    """
    Immutable retry configuration.

    All fields are validated together on construction; a policy that exists
    is always valid. ``RetryPolicy.no_retry()`` (one attempt, zero delays) is
    a valid policy.

    Attributes:
        max_attempts: Total attempts, including the first one (>= 1)
        initial_delay: Delay before the first retry, seconds (>= 0)
        max_delay: Upper bound for any single delay, seconds (>= 0)
        multiplier: Growth factor between consecutive delays (>= 1)
        jitter: Random spread as a fraction of the delay (0..1)
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=0.1, ge=0.0)
    max_delay: float = Field(default=5.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: float = Field(default=0.1, ge=0.0, le=1.0)

    @classmethod
    def create(cls, **fields: Any) -> "RetryPolicy":
        """
        Build a policy, reporting invalid values as ConfigurationError.

        Raises:
            ConfigurationError: If any field is out of range
        """
        try:
            return cls(**fields)
        except PydanticValidationError as e:
            error_messages = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigurationError(
                "invalid retry configuration",
                details={"validation_errors": error_messages},
                cause=e,
            ) from e

    @classmethod
    def default(cls) -> "RetryPolicy":
        """3 attempts, 100ms initial delay, 5s cap, doubling, +/-10% jitter."""
        return cls()

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Single attempt, never waits."""
        return cls(max_attempts=1, initial_delay=0.0, max_delay=0.0, jitter=0.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls.create(
            max_attempts=settings.MAX_ATTEMPTS,
            initial_delay=settings.INITIAL_DELAY_SECONDS,
            max_delay=settings.MAX_DELAY_SECONDS,
            multiplier=settings.BACKOFF_MULTIPLIER,
            jitter=settings.JITTER_FRACTION,
        )

    def with_max_attempts(self, max_attempts: int) -> "RetryPolicy":
        """Copy of this policy with a different attempt budget."""
        return self.create(**{**self.model_dump(), "max_attempts": max_attempts})

    def base_delay(self, attempt: int) -> float:
        """Capped exponential delay for ``attempt`` before jitter."""
        if attempt <= 0 or self.initial_delay == 0:
            return 0.0
        try:
            delay = self.initial_delay * self.multiplier ** (attempt - 1)
        except OverflowError:
            # Growth past the float range is far beyond any cap
            return self.max_delay
        return min(delay, self.max_delay)

    def delay(self, attempt: int, uniform: Callable[[float, float], float] = random.uniform) -> float:
        """
        Delay in seconds to wait before ``attempt`` (0-indexed).

        Args:
            attempt: Attempt index; 0 always yields 0
            uniform: Source of uniform random numbers (injectable for tests)

        Returns:
            Delay within [base * (1 - jitter), base * (1 + jitter)]
        """
        base = self.base_delay(attempt)
        if base == 0 or self.jitter == 0:
            return base
        spread = base * self.jitter
        return base + uniform(-spread, spread)

    async def backoff(self, attempt: int) -> None:
        """
        Sleep before ``attempt``.

        Returns immediately for a zero delay. The sleep is a normal asyncio
        suspension point: cancelling the task (or an enclosing timeout)
        raises CancelledError out of here instead of continuing.
        """
        delay = self.delay(attempt)
        if delay <= 0:
            return
        await asyncio.sleep(delay)
