"""Validation engine for the graph validation service.

This package runs validation rules against the graph store and records what
happened:

- **Models**: Execution, Validation, ValidationError, ExecutionReport
- **Rules**: SelectRule (row-set) and AskRule (boolean) rule variants
- **Registry**: RuleCatalog, the configured rules and validation sets
- **Executions**: ExecutionManager, the execution lifecycle and crash recovery
- **Tracker / Errors**: validation records and error records
- **Runner**: ExecutionOrchestrator, concurrent evaluation of a rule set

Usage:
    >>> from graph_validation.validation import ExecutionManager, ExecutionOrchestrator
    >>> execution = await manager.create_execution()
    >>> report = await orchestrator.perform(execution, catalog.for_set(None))
    >>> print(report.to_console_summary())
"""

from __future__ import annotations

from .errors import ErrorRecorder
from .executions import ExecutionManager
from .messages import StaticMessage, TemplatedMessage
from .models import (
    Execution,
    ExecutionReport,
    RuleOutcome,
    Validation,
    ValidationError,
    ValidationSummary,
)
from .registry import RuleCatalog
from .rules import AskRule, EvaluationContext, SelectRule, ValidationRule
from .runner import ExecutionOrchestrator
from .tracker import ValidationTracker

__all__ = [
    # Data models
    "Execution",
    "Validation",
    "ValidationError",
    "RuleOutcome",
    "ExecutionReport",
    "ValidationSummary",
    # Rules
    "ValidationRule",
    "EvaluationContext",
    "SelectRule",
    "AskRule",
    "StaticMessage",
    "TemplatedMessage",
    "RuleCatalog",
    # Components
    "ErrorRecorder",
    "ValidationTracker",
    "ExecutionManager",
    "ExecutionOrchestrator",
]
