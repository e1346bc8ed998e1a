"""
Unit tests for RetryPolicy.

Covers construction/validation, the capped exponential schedule, jitter
bounds and the cancellation behavior of backoff().
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from railguard.exceptions import ConfigurationError
from railguard.retry.policy import RetryPolicy


# ============================================================================
# Construction
# ============================================================================


def test_default_policy_values():
    """Test default() returns 3 attempts, 100ms, 5s cap, x2, 10% jitter."""
    policy = RetryPolicy.default()

    assert policy.max_attempts == 3
    assert policy.initial_delay == 0.1
    assert policy.max_delay == 5.0
    assert policy.multiplier == 2.0
    assert policy.jitter == 0.1


def test_no_retry_policy():
    """Test no_retry() is a valid single-attempt policy that never waits."""
    policy = RetryPolicy.no_retry()

    assert policy.max_attempts == 1
    assert policy.delay(1) == 0.0
    assert policy.delay(5) == 0.0


@pytest.mark.parametrize(
    "fields",
    [
        {"max_attempts": 0},
        {"max_attempts": -2},
        {"initial_delay": -0.1},
        {"max_delay": -1.0},
        {"multiplier": 0.5},
        {"jitter": -0.01},
        {"jitter": 1.5},
        {"unexpected": 1},
    ],
)
def test_create_rejects_invalid_values(fields):
    """Test create() reports out-of-range values as ConfigurationError."""
    with pytest.raises(ConfigurationError) as exc_info:
        RetryPolicy.create(**fields)

    assert "invalid retry configuration" in str(exc_info.value)
    assert exc_info.value.details["validation_errors"]


def test_configuration_error_is_value_error():
    """Test invalid policies can be caught as ValueError too."""
    with pytest.raises(ValueError):
        RetryPolicy.create(max_attempts=0)


def test_policy_is_immutable():
    """Test a built policy cannot be modified."""
    policy = RetryPolicy.default()

    with pytest.raises(Exception):
        policy.max_attempts = 10


def test_with_max_attempts_keeps_other_fields():
    """Test with_max_attempts() only changes the attempt budget."""
    policy = RetryPolicy.create(initial_delay=0.5, multiplier=3.0, jitter=0.0)
    updated = policy.with_max_attempts(7)

    assert updated.max_attempts == 7
    assert updated.initial_delay == 0.5
    assert updated.multiplier == 3.0
    assert policy.max_attempts == 3


def test_with_max_attempts_validates():
    with pytest.raises(ConfigurationError):
        RetryPolicy.default().with_max_attempts(0)


def test_from_settings(test_settings):
    """Test from_settings() maps the retry settings onto the policy."""
    test_settings.MAX_ATTEMPTS = 4
    test_settings.INITIAL_DELAY_SECONDS = 0.25
    test_settings.MAX_DELAY_SECONDS = 2.0
    test_settings.BACKOFF_MULTIPLIER = 1.5
    test_settings.JITTER_FRACTION = 0.2

    policy = RetryPolicy.from_settings(test_settings)

    assert policy == RetryPolicy(
        max_attempts=4, initial_delay=0.25, max_delay=2.0, multiplier=1.5, jitter=0.2
    )


def test_from_settings_invalid(test_settings):
    test_settings.MAX_ATTEMPTS = 0

    with pytest.raises(ConfigurationError):
        RetryPolicy.from_settings(test_settings)


# ============================================================================
# Delay schedule
# ============================================================================


class TestDelaySchedule:
    """Test suite for base_delay() and delay()."""

    def setup_method(self):
        self.policy = RetryPolicy.create(
            max_attempts=10, initial_delay=0.1, max_delay=1.0, multiplier=2.0, jitter=0.0
        )

    def test_first_attempt_never_waits(self):
        assert self.policy.delay(0) == 0.0
        assert self.policy.base_delay(-1) == 0.0

    def test_exponential_growth(self):
        """Test delays double from the initial delay."""
        assert self.policy.delay(1) == pytest.approx(0.1)
        assert self.policy.delay(2) == pytest.approx(0.2)
        assert self.policy.delay(3) == pytest.approx(0.4)
        assert self.policy.delay(4) == pytest.approx(0.8)

    def test_delay_is_capped(self):
        """Test no delay exceeds max_delay."""
        assert self.policy.delay(5) == pytest.approx(1.0)
        assert self.policy.delay(9) == pytest.approx(1.0)

    def test_large_attempt_is_capped(self):
        """Test attempts whose growth leaves the float range still return max_delay."""
        policy = RetryPolicy.create(
            max_attempts=2000, initial_delay=0.01, max_delay=1.0, multiplier=2.0, jitter=0.0
        )

        assert policy.delay(1100) == 1.0
        assert policy.base_delay(5000) == 1.0

    def test_large_attempt_with_jitter_stays_in_bounds(self):
        policy = RetryPolicy.create(initial_delay=0.5, max_delay=2.0, multiplier=10.0, jitter=0.5)

        assert policy.delay(400, uniform=lambda low, high: high) == pytest.approx(3.0)
        assert policy.delay(400, uniform=lambda low, high: low) == pytest.approx(1.0)

    def test_zero_initial_delay(self):
        policy = RetryPolicy.create(initial_delay=0.0, jitter=0.5)

        assert policy.delay(1) == 0.0
        assert policy.delay(3) == 0.0

    def test_multiplier_one_is_constant(self):
        policy = RetryPolicy.create(initial_delay=0.3, multiplier=1.0, jitter=0.0)

        assert [policy.delay(a) for a in (1, 2, 3)] == pytest.approx([0.3, 0.3, 0.3])


class TestJitter:
    """Test suite for jitter bounds."""

    def test_jitter_within_bounds(self):
        """Test every jittered delay stays within +/- jitter of the base."""
        policy = RetryPolicy.create(initial_delay=1.0, max_delay=10.0, jitter=0.1)

        for _ in range(200):
            delay = policy.delay(1)
            assert 0.9 <= delay <= 1.1

    def test_jitter_uses_injected_source(self):
        """Test the uniform source receives the symmetric spread."""
        policy = RetryPolicy.create(initial_delay=2.0, max_delay=10.0, jitter=0.25)
        calls = []

        def fake_uniform(low, high):
            calls.append((low, high))
            return high

        assert policy.delay(1, uniform=fake_uniform) == pytest.approx(2.5)
        assert calls == [(-0.5, 0.5)]

    def test_jitter_applies_after_cap(self):
        policy = RetryPolicy.create(initial_delay=1.0, max_delay=1.0, jitter=0.5)

        assert policy.delay(6, uniform=lambda low, high: low) == pytest.approx(0.5)

    def test_zero_jitter_is_deterministic(self):
        policy = RetryPolicy.create(initial_delay=0.2, jitter=0.0)

        assert all(policy.delay(2) == pytest.approx(0.4) for _ in range(20))


# ============================================================================
# Backoff
# ============================================================================


@pytest.mark.asyncio
async def test_backoff_zero_delay_does_not_sleep():
    """Test a zero delay returns without touching asyncio.sleep."""
    with patch("railguard.retry.policy.asyncio.sleep", new=AsyncMock()) as sleep:
        await RetryPolicy.no_retry().backoff(3)

    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_backoff_sleeps_for_delay():
    policy = RetryPolicy.create(initial_delay=0.3, jitter=0.0)

    with patch("railguard.retry.policy.asyncio.sleep", new=AsyncMock()) as sleep:
        await policy.backoff(2)

    sleep.assert_awaited_once()
    assert sleep.await_args.args[0] == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_backoff_is_cancellable():
    """Test cancelling a task mid-backoff raises CancelledError promptly."""
    policy = RetryPolicy.create(initial_delay=30.0, max_delay=30.0, jitter=0.0)
    task = asyncio.create_task(policy.backoff(1))
    await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_backoff_interrupted_by_timeout():
    policy = RetryPolicy.create(initial_delay=30.0, max_delay=30.0, jitter=0.0)

    with pytest.raises(TimeoutError):
        async with asyncio.timeout(0.01):
            await policy.backoff(1)
