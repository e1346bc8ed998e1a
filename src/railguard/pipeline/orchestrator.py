"""
Pipeline orchestrator: staged, retrying execution of one generation call.

Phase order for one run:

    PRE_CHECKS -> [GENERATE -> POST_CHECKS -> DECODE] x attempts -> RunResult

- PRE_CHECKS runs once; the first rejection ends the run with
  PreCheckFailure. The client is never called and nothing is retried.
- Each attempt runs GENERATE, POST_CHECKS and DECODE in that order. A
  failure in any of them is wrapped once (GenerationFailure,
  PostCheckFailure, StructuralFailure) and handed to the classifier:
  non-retryable failures end the run as they are, retryable ones are kept
  as the last failure and the next attempt starts after backing off.
- When max_attempts attempts fail, the run ends with RetriesExhausted
  carrying the last wrapped failure.
- The optional overall timeout bounds every phase, backoff included, and
  wins over any other outcome (RunTimeout).
- Task cancellation propagates as asyncio.CancelledError.

The orchestrator performs no I/O of its own and keeps all per-run state
(attempt counter, timer, last failure) in local variables.
"""

import asyncio
import time
from typing import Any, Optional

from railguard.checks.base import Check, evaluate
from railguard.exceptions import (
    ConfigurationError,
    GenerationFailure,
    PostCheckFailure,
    PreCheckFailure,
    RailguardError,
    RetriesExhausted,
    RunTimeout,
    StructuralFailure,
)
from railguard.models.results import RunMetadata, RunResult
from railguard.pipeline.config import RunConfiguration
from railguard.retry.classifier import is_retryable

# Failures produced inside one attempt
_ATTEMPT_FAILURES = (GenerationFailure, PostCheckFailure, StructuralFailure)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class Pipeline:
    """
    Runs prompts through a RunConfiguration.

    A Pipeline holds no per-run state, so a single instance may serve
    concurrent run() calls.

    Attributes:
        config: The immutable configuration this pipeline executes
    """

    def __init__(self, config: RunConfiguration):
        if not isinstance(config, RunConfiguration):
            raise ConfigurationError(
                f"config must be a RunConfiguration, got {type(config).__name__}"
            )
        self.config = config

    async def run(self, prompt: str) -> RunResult:
        """
        Execute the full pipeline for ``prompt``.

        Returns:
            RunResult with the raw text, the decoded value (when a schema is
            configured) and attempt/timing metadata

        Raises:
            PreCheckFailure: An input check rejected the prompt
            GenerationFailure, PostCheckFailure, StructuralFailure: A
                non-retryable failure (e.g. caused by a deadline) in an attempt
            RetriesExhausted: Every attempt failed
            RunTimeout: The overall timeout elapsed
            asyncio.CancelledError: The calling task was cancelled
        """
        start = time.perf_counter()
        timeout = self.config.timeout
        if timeout is None:
            return await self._execute(prompt, start, deadline=None)

        deadline = asyncio.get_running_loop().time() + timeout
        try:
            async with asyncio.timeout_at(deadline):
                return await self._execute(prompt, start, deadline)
        except TimeoutError as e:
            if isinstance(e, RunTimeout):
                raise
            raise RunTimeout(timeout, _elapsed_ms(start), cause=e) from e

    async def _execute(self, prompt: str, start: float, deadline: Optional[float]) -> RunResult:
        await self._run_pre_checks(prompt)

        policy = self.config.retry
        last_failure: Optional[RailguardError] = None

        for attempt in range(policy.max_attempts):
            if attempt > 0:
                await policy.backoff(attempt)

            try:
                raw = await self._generate(prompt)
                await self._run_post_checks(raw)
                parsed = self._decode(raw)
            except _ATTEMPT_FAILURES as failure:
                if not is_retryable(failure):
                    raise
                if deadline is not None and asyncio.get_running_loop().time() >= deadline:
                    raise RunTimeout(self.config.timeout, _elapsed_ms(start), cause=failure) from failure
                last_failure = failure
                continue

            return RunResult(
                raw=raw,
                parsed=parsed,
                metadata=RunMetadata(attempts=attempt + 1, elapsed_ms=_elapsed_ms(start)),
            )

        raise RetriesExhausted(policy.max_attempts, last_failure)

    async def _run_pre_checks(self, prompt: str) -> None:
        check: Check
        for check in self.config.pre_checks:
            try:
                await evaluate(check, prompt)
            except Exception as e:
                raise PreCheckFailure(check.name, e) from e

    async def _generate(self, prompt: str) -> str:
        try:
            output = await self.config.client.generate(prompt)
        except Exception as e:
            raise GenerationFailure(e) from e
        if not isinstance(output, str):
            raise GenerationFailure(
                TypeError(f"client returned {type(output).__name__}, expected str")
            )
        return output

    async def _run_post_checks(self, output: str) -> None:
        check: Check
        for check in self.config.post_checks:
            try:
                await evaluate(check, output)
            except Exception as e:
                raise PostCheckFailure(check.name, e, output=output) from e

    def _decode(self, output: str) -> Any:
        descriptor = self.config.descriptor
        if descriptor is None:
            return None
        try:
            return descriptor.decode(output)
        except StructuralFailure:
            raise
        except Exception as e:
            raise StructuralFailure(
                f"unexpected error while decoding: {e}",
                cause=e,
                raw_content=output,
            ) from e

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"pre_checks={len(self.config.pre_checks)}, "
            f"post_checks={len(self.config.post_checks)}, "
            f"max_attempts={self.config.retry.max_attempts})"
        )
