"""
Run configuration and its builder.

A RunConfiguration is validated once, at construction, and is read-only
afterwards, so one configuration can back any number of concurrent runs.
Invalid input raises ConfigurationError from the builder method or the
constructor, never from Pipeline.run().

Usage:
    config = (
        PipelineBuilder()
        .with_client(client)
        .with_pre_checks(no_injection)
        .with_post_checks(valid_json)
        .with_schema(Answer)
        .with_max_attempts(3)
        .build()
    )
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

import structlog

from railguard.checks.base import Check, is_check
from railguard.config import Settings
from railguard.exceptions import ConfigurationError
from railguard.llm.base_client import GenerationClient
from railguard.retry.policy import RetryPolicy
from railguard.schema.descriptor import StructuralDescriptor

if TYPE_CHECKING:
    from railguard.pipeline.orchestrator import Pipeline

logger = structlog.get_logger(__name__)


def _validate_client(client: Any) -> None:
    if client is None:
        raise ConfigurationError("no client provided")
    if not callable(getattr(client, "generate", None)):
        raise ConfigurationError(
            f"client must provide generate(prompt), got {type(client).__name__}",
            details={"client_type": type(client).__name__},
        )


def _validate_checks(checks: Iterable[Any], role: str) -> tuple[Check, ...]:
    validated = tuple(checks)
    for index, check in enumerate(validated):
        if check is None:
            raise ConfigurationError(f"{role} cannot be None", details={"index": index})
        if not is_check(check):
            raise ConfigurationError(
                f"{role} must provide a name and check(text), got {type(check).__name__}",
                details={"index": index, "check_type": type(check).__name__},
            )
    return validated


@dataclass(frozen=True)
class RunConfiguration:
    """
    Immutable pipeline configuration.

    Attributes:
        client: Generation client (required)
        pre_checks: Input checks, run in order before any generation
        post_checks: Output checks, run in order on every generated text
        descriptor: Expected output structure (None skips decoding)
        retry: Attempt budget and backoff
        timeout: Overall run timeout in seconds (None for no limit)
        strict_schema: Overrides the descriptor's strictness when not None
    """

    client: GenerationClient
    pre_checks: tuple[Check, ...] = ()
    post_checks: tuple[Check, ...] = ()
    descriptor: Optional[StructuralDescriptor] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy.default)
    timeout: Optional[float] = None
    strict_schema: Optional[bool] = None

    def __post_init__(self) -> None:
        """Validate and freeze all fields."""
        _validate_client(self.client)
        object.__setattr__(self, "pre_checks", _validate_checks(self.pre_checks, "pre-check"))
        object.__setattr__(self, "post_checks", _validate_checks(self.post_checks, "post-check"))

        if not isinstance(self.retry, RetryPolicy):
            raise ConfigurationError(
                f"retry must be a RetryPolicy, got {type(self.retry).__name__}"
            )

        if self.timeout is not None and (
            isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float))
        ):
            raise ConfigurationError(
                f"timeout must be a number of seconds, got {type(self.timeout).__name__}",
                details={"timeout_type": type(self.timeout).__name__},
            )

        if self.timeout is not None and not self.timeout > 0:
            raise ConfigurationError(
                "timeout must be positive",
                details={"timeout": self.timeout},
            )

        if self.descriptor is not None:
            if not isinstance(self.descriptor, StructuralDescriptor):
                raise ConfigurationError(
                    f"descriptor must be a StructuralDescriptor, got {type(self.descriptor).__name__}"
                )
            # Private frozen copy: later set_strict() calls on the caller's
            # descriptor cannot reach runs using this configuration
            strict = self.descriptor.strict if self.strict_schema is None else self.strict_schema
            object.__setattr__(self, "descriptor", self.descriptor.with_strict(strict).freeze())


class PipelineBuilder:
    """
    Fluent builder for RunConfiguration.

    Each method validates its own argument immediately and returns the
    builder. Checks accumulate across calls in declaration order. Strictness
    set with with_strict_schema() applies whether it is called before or
    after with_schema().
    """

    def __init__(self) -> None:
        self._client: Optional[GenerationClient] = None
        self._pre_checks: list[Check] = []
        self._post_checks: list[Check] = []
        self._descriptor: Optional[StructuralDescriptor] = None
        self._retry = RetryPolicy.default()
        self._timeout: Optional[float] = None
        self._strict_schema: Optional[bool] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineBuilder":
        """
        Builder preloaded with retry policy, run timeout and schema
        strictness from settings. The client still has to be supplied.
        """
        return (
            cls()
            .with_retry(RetryPolicy.from_settings(settings))
            .with_timeout(settings.RUN_TIMEOUT_SECONDS)
            .with_strict_schema(settings.STRICT_SCHEMA)
        )

    def with_client(self, client: GenerationClient) -> "PipelineBuilder":
        if client is None:
            raise ConfigurationError("client cannot be None")
        _validate_client(client)
        self._client = client
        return self

    def with_schema(self, template: Any) -> "PipelineBuilder":
        """
        Set the expected output structure.

        Args:
            template: Pydantic model class or instance, or a ready StructuralDescriptor
        """
        if isinstance(template, StructuralDescriptor):
            self._descriptor = template
        else:
            self._descriptor = StructuralDescriptor(template)
        return self

    def with_pre_checks(self, *checks: Check) -> "PipelineBuilder":
        self._pre_checks.extend(_validate_checks(checks, "pre-check"))
        return self

    def with_post_checks(self, *checks: Check) -> "PipelineBuilder":
        self._post_checks.extend(_validate_checks(checks, "post-check"))
        return self

    def with_retry(self, policy: RetryPolicy) -> "PipelineBuilder":
        if not isinstance(policy, RetryPolicy):
            raise ConfigurationError(
                f"retry must be a RetryPolicy, got {type(policy).__name__}"
            )
        self._retry = policy
        return self

    def with_max_attempts(self, max_attempts: int) -> "PipelineBuilder":
        """Change only the attempt budget, keeping the other policy fields."""
        self._retry = self._retry.with_max_attempts(max_attempts)
        return self

    def with_timeout(self, seconds: Optional[float]) -> "PipelineBuilder":
        """Overall run timeout. None or 0 disables it; negative values are rejected."""
        if seconds is None:
            self._timeout = None
            return self
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            raise ConfigurationError(
                f"timeout must be a number of seconds, got {type(seconds).__name__}",
                details={"timeout_type": type(seconds).__name__},
            )
        if seconds < 0:
            raise ConfigurationError(
                "timeout must be positive",
                details={"timeout": seconds},
            )
        self._timeout = seconds or None
        return self

    def with_strict_schema(self, strict: bool) -> "PipelineBuilder":
        self._strict_schema = strict
        return self

    def build(self) -> RunConfiguration:
        """
        Raises:
            ConfigurationError: If no client was provided
        """
        config = RunConfiguration(
            client=self._client,
            pre_checks=tuple(self._pre_checks),
            post_checks=tuple(self._post_checks),
            descriptor=self._descriptor,
            retry=self._retry,
            timeout=self._timeout,
            strict_schema=self._strict_schema,
        )
        logger.debug(
            "Pipeline configuration built",
            client=repr(config.client),
            pre_checks=[c.name for c in config.pre_checks],
            post_checks=[c.name for c in config.post_checks],
            schema=config.descriptor.model.__name__ if config.descriptor else None,
            strict_schema=config.descriptor.strict if config.descriptor else None,
            max_attempts=config.retry.max_attempts,
            timeout=config.timeout,
        )
        return config

    def build_pipeline(self) -> "Pipeline":
        from railguard.pipeline.orchestrator import Pipeline

        return Pipeline(self.build())
