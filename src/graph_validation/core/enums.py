"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class ExecutionStatus(str, Enum):
    """Lifecycle states of an execution.

    Values are the literal strings persisted in the store.
    """

    ONGOING = "ongoing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.ONGOING


class ValidationStatus(str, Enum):
    """Lifecycle states of a single validation.

    The terminal states describe whether the check ran, not whether the data
    is valid: ``FAILED`` means the check itself errored before a verdict.
    """

    ONGOING = "ongoing"
    SUCCEEDED = "validation-succeeded"
    VALIDATION_FAILED = "validation-failed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ValidationStatus.ONGOING


__all__ = ["ExecutionStatus", "ValidationStatus"]
