"""
Custom exceptions for the validation service.

Each exception corresponds to one category of failure. Where a failure is
handled (isolated per rule, surfaced to the HTTP caller, or only logged) is
decided by the component that catches it, not by the exception itself.
"""

from __future__ import annotations

from typing import Optional


class GraphValidationError(Exception):
    """Base class for all service errors."""


class ConfigurationError(GraphValidationError):
    """
    Raised when the service configuration or rule catalog is unusable.

    Examples:
        * Missing application graph
        * Rule without a name or description
        * Unknown rule type in the catalog file
    """


class PersistenceError(GraphValidationError):
    """
    Raised when the store rejects or fails a read or write.

    At the HTTP boundary this becomes a generic server error.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GraphValidationError):
    """Raised when a lookup by identifier matches no record."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class RuleEvaluationError(GraphValidationError):
    """
    Raised when a validation rule's query or evaluation fails.

    The orchestrator isolates this per rule: the rule's validation is marked
    ``failed`` and sibling rules keep running.
    """

    def __init__(self, rule_name: str, message: str) -> None:
        super().__init__(f"Validation '{rule_name}' could not be evaluated: {message}")
        self.rule_name = rule_name


class MalformedErrorRecord(GraphValidationError):
    """
    An error payload is missing its execution, validation or message.

    The error recorder logs and drops such records instead of raising.
    """

    def __str__(self) -> str:
        return f"Malformed error record: {super().__str__()}"


__all__ = [
    "GraphValidationError",
    "ConfigurationError",
    "PersistenceError",
    "NotFoundError",
    "RuleEvaluationError",
    "MalformedErrorRecord",
]
