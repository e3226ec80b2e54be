"""Errors raised by lifecycle operations.

Mutation failures abort the enclosing transaction and propagate unchanged.
Read-only diagnostics report anomalies as data instead of raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cl_lifecycle.domain.model import FailureKey


class LifecycleError(RuntimeError):
    """Base class for lifecycle operation failures."""


class TransactionAborted(LifecycleError):
    """Raised when the store could not commit; retry the whole operation."""


class ConstraintViolation(LifecycleError):
    """Raised when a write would break a uniqueness invariant of the store."""

    def __init__(self, message: str, *, key: FailureKey | None = None) -> None:
        super().__init__(message)
        self.key = key


class InvalidSelector(LifecycleError, ValueError):
    """Raised when a selector payload is malformed or targets unknown fields."""


class PreconditionFailed(LifecycleError):
    """Raised when an apply no longer matches the preview it was based on."""

    def __init__(
        self,
        *,
        operation: str,
        expected: Mapping[str, int],
        actual: Mapping[str, int],
        previewed: str | None = None,
    ) -> None:
        self.operation = operation
        self.previewed = previewed or operation
        self.expected = dict(expected)
        self.actual = dict(actual)
        if self.previewed != operation:
            message = f"Preview of {self.previewed!r} cannot authorize {operation!r}"
        else:
            message = (
                f"Selection for {operation!r} changed since preview: "
                f"expected={self.expected}, actual={self.actual}"
            )
        super().__init__(message)
