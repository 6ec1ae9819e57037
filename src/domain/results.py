"""
Operation results - Structured outcomes returned across the domain boundary.

Public operations never raise past their boundary. They return one of the
result types below, which carry either a value or an ErrorKind plus a
human-readable message.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import ErrorKind, RegistrationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a mutating or exporting operation."""

    success: bool
    value: T | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(success=False, error=error, message=message)


@dataclass(frozen=True)
class EligibilityResult:
    """
    Advisory answer to "can this identity number register for this event".

    valid reflects the identity number itself; is_duplicate is only
    meaningful when valid is True.
    """

    valid: bool
    is_duplicate: bool
    error: ErrorKind | None = None
    message: str | None = None


def run_operation(name: str, operation: Callable[[], T]) -> OperationResult[T]:
    """
    Execute an operation and translate any failure into a result.

    Domain errors are logged at WARNING and reported with their kind.
    Anything else is logged with its traceback and reported as INTERNAL.
    """
    try:
        return OperationResult.ok(operation())
    except RegistrationError as e:
        logger.warning("%s failed: %s (%s)", name, e, e.kind.value)
        return OperationResult.fail(e.kind, str(e))
    except Exception:
        logger.exception("%s failed unexpectedly", name)
        return OperationResult.fail(ErrorKind.INTERNAL, f"Failed to {name.replace('_', ' ')}")
