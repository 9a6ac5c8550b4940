"""Core enumerations, exceptions and SPARQL helpers."""

from .enums import ExecutionStatus, ValidationStatus
from .exceptions import (
    ConfigurationError,
    GraphValidationError,
    MalformedErrorRecord,
    NotFoundError,
    PersistenceError,
    RuleEvaluationError,
)

__all__ = [
    "ExecutionStatus",
    "ValidationStatus",
    "GraphValidationError",
    "ConfigurationError",
    "PersistenceError",
    "NotFoundError",
    "RuleEvaluationError",
    "MalformedErrorRecord",
]
