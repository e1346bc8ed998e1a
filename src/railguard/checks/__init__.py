"""
Pluggable check slot shared by pre-checks and post-checks.

Concrete predicates (keyword lists, pattern matchers, length bounds, ...)
are supplied by the host application; this package only defines the
contract and a function adapter.
"""

from railguard.checks.base import (
    Check,
    CheckRejected,
    FunctionCheck,
    evaluate,
    is_check,
)

__all__ = [
    "Check",
    "CheckRejected",
    "FunctionCheck",
    "evaluate",
    "is_check",
]
