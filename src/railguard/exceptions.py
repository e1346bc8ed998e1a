"""
Failure taxonomy for the protective pipeline.

Every failure a run can end with is one of these exceptions. Stage failures
are raised at the stage boundary with the original exception chained as
``cause`` (and ``__cause__``), so callers can tell them apart with
``isinstance`` or ``error.kind`` and never need to parse messages:

- PreCheckFailure: an input check rejected the prompt (terminal)
- GenerationFailure: the generation client failed (retryable)
- PostCheckFailure: an output check rejected the text (retryable)
- StructuralFailure: the output did not decode into the schema (retryable)
- RetriesExhausted: every attempt failed; wraps the last stage failure
- RunTimeout: the overall run timeout elapsed (terminal)
- ConfigurationError: invalid configuration, raised at construction time

Cancellation is not wrapped: ``asyncio.CancelledError`` propagates as is.
"""

from typing import Any, ClassVar, Optional

from railguard.models.enums import FailureKind, PipelinePhase

# Offending output is truncated in error details to keep log lines bounded
SNIPPET_LIMIT = 500


class RailguardError(Exception):
    """
    Base exception for all Railguard failures.

    Attributes:
        message: Human-readable description
        details: Structured data for logging/metrics
        cause: Underlying exception, if any
    """

    kind: ClassVar[FailureKind] = FailureKind.UNKNOWN
    phase: ClassVar[Optional[PipelinePhase]] = None

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigurationError(RailguardError, ValueError):
    """
    Raised when a pipeline, retry policy or schema is configured incorrectly.

    Always raised while building objects, never during a run.
    """

    kind = FailureKind.INVALID_CONFIGURATION


class CheckRejected(Exception):
    """
    Convenience exception for check implementations to signal a rejection.

    Any exception raised by a check counts as a rejection; this one simply
    carries a reason without implying a bug in the check.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PreCheckFailure(RailguardError):
    """
    An input-side check rejected the prompt.

    Terminal: the prompt would be resubmitted unchanged, so retrying
    cannot change the outcome.
    """

    kind = FailureKind.PRE_CHECK
    phase = PipelinePhase.PRE_CHECKS

    def __init__(self, check_name: str, cause: BaseException):
        super().__init__(
            f"pre-check failed [{check_name}]",
            details={"check": check_name, "error_type": type(cause).__name__},
            cause=cause,
        )
        self.check_name = check_name


class GenerationFailure(RailguardError):
    """The generation client raised instead of returning text."""

    kind = FailureKind.GENERATION
    phase = PipelinePhase.GENERATE

    def __init__(self, cause: BaseException):
        super().__init__(
            "generation failed",
            details={"error_type": type(cause).__name__},
            cause=cause,
        )


class PostCheckFailure(RailguardError):
    """An output-side check rejected the generated text."""

    kind = FailureKind.POST_CHECK
    phase = PipelinePhase.POST_CHECKS

    def __init__(self, check_name: str, cause: BaseException, output: str | None = None):
        details: dict[str, Any] = {"check": check_name, "error_type": type(cause).__name__}
        if output is not None:
            details["content_snippet"] = output[:SNIPPET_LIMIT]
        super().__init__(f"post-check failed [{check_name}]", details=details, cause=cause)
        self.check_name = check_name


class StructuralFailure(RailguardError):
    """
    The generated text did not decode into the expected structure.

    Raised for malformed JSON, trailing content after the value, unknown
    fields in strict mode and field type mismatches.
    """

    kind = FailureKind.STRUCTURAL
    phase = PipelinePhase.DECODE

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        raw_content: str | None = None,
        unknown_fields: list[str] | None = None,
        validation_errors: list[str] | None = None,
    ):
        details: dict[str, Any] = {}
        if raw_content is not None:
            details["content_snippet"] = raw_content[:SNIPPET_LIMIT]
        if unknown_fields:
            details["unknown_fields"] = unknown_fields
        if validation_errors:
            details["validation_errors"] = validation_errors[:10]
        super().__init__(message, details=details, cause=cause)


class RetriesExhausted(RailguardError):
    """
    Every attempt failed with a retryable failure.

    Attributes:
        attempts: Number of attempts made (the policy's max_attempts)
        last_cause: Wrapped stage failure from the final attempt
    """

    kind = FailureKind.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, last_cause: RailguardError):
        super().__init__(
            f"max retries exceeded after {attempts} attempts",
            details={
                "attempts": attempts,
                "last_failure_kind": last_cause.kind.value,
            },
            cause=last_cause,
        )
        self.attempts = attempts
        self.last_cause = last_cause


class RunTimeout(RailguardError, TimeoutError):
    """
    The overall run timeout elapsed before the run finished.

    Takes precedence over any other outcome, including RetriesExhausted.
    """

    kind = FailureKind.DEADLINE_EXCEEDED

    def __init__(self, timeout: float, elapsed_ms: int, cause: BaseException | None = None):
        super().__init__(
            f"run timed out after {timeout}s",
            details={"timeout_seconds": timeout, "elapsed_ms": elapsed_ms},
            cause=cause,
        )
        self.timeout = timeout
        self.elapsed_ms = elapsed_ms
