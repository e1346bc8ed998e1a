"""
Check contract for pre-checks (input side) and post-checks (output side).

A check is anything with a ``name`` and a ``check(text)`` method. The method
may be sync or async; it returns None to accept the text and raises any
exception to reject it (CheckRejected is provided for plain rejections).
Anything else it returns also rejects the text, so a check never fails open.
Checks must not depend on or mutate pipeline state.
"""

import inspect
from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from railguard.exceptions import CheckRejected

CheckResult = Union[None, Awaitable[None]]


@runtime_checkable
class Check(Protocol):
    """
    Protocol for input/output checks.

    ``name`` identifies the check in failures (PreCheckFailure.check_name,
    PostCheckFailure.check_name) and logs.
    """

    name: str

    def check(self, text: str) -> CheckResult:
        """
        Examine ``text``.

        Raises:
            Exception: Any exception rejects the text
        """
        ...


class FunctionCheck:
    """
    Adapter turning a plain callable into a Check.

    The callable receives the text and may be a regular function or a
    coroutine function. Unnamed checks are reported as "custom".

    Example:
        >>> def no_urls(text):
        ...     if "http" in text:
        ...         raise CheckRejected("links are not allowed")
        >>> check = FunctionCheck(no_urls, name="no_urls")
    """

    def __init__(self, func: Callable[[str], Any], name: str = "custom"):
        if not callable(func):
            raise TypeError(f"check function must be callable, got {type(func).__name__}")
        self.func = func
        self.name = name

    def check(self, text: str) -> CheckResult:
        return self.func(text)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


async def evaluate(check: Check, text: str) -> None:
    """
    Run one check, awaiting it if it is asynchronous.

    A check that returns an exception instead of raising it is treated as
    having raised it. Any other non-None return value rejects the text too.

    Raises:
        Exception: Whatever the check raised (or returned) to reject the text
        TypeError: The check returned something other than None
    """
    outcome = check.check(text)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    if outcome is None:
        return
    if isinstance(outcome, BaseException):
        raise outcome
    raise TypeError(
        f"check {check.name!r} returned {type(outcome).__name__}; "
        f"checks must return None to pass and raise to reject"
    )


def is_check(candidate: Any) -> bool:
    """True if ``candidate`` satisfies the check contract."""
    return (
        candidate is not None
        and isinstance(getattr(candidate, "name", None), str)
        and callable(getattr(candidate, "check", None))
    )


