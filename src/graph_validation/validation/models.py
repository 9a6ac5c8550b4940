"""Validation data models.

This module defines the records the service persists and the report it builds:
- Execution: one run of a selected rule set
- Validation: the record of one rule's evaluation within one execution
- ValidationError: one persisted violation
- RuleOutcome / ExecutionReport: per-rule results of a run, for logging and CLI output
- ValidationSummary: derived per-execution counts of validation statuses
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from graph_validation.core.enums import ExecutionStatus, ValidationStatus


@dataclass(frozen=True)
class Execution:
    """A run of a selected set of validation rules.

    Attributes:
        id: Opaque identifier, used in ``/executions/{id}``.
        uri: Globally unique resource IRI.
        status: Lifecycle state; only ``ExecutionManager`` changes it.
        created: Creation timestamp (UTC).
        validation_set: IRI of the requested validation set, if any.
    """

    id: str
    uri: str
    status: ExecutionStatus
    created: datetime
    validation_set: Optional[str] = None

    def to_jsonapi(self) -> Dict[str, Any]:
        """Wrap the execution in a JSON:API document.

        Examples:
            >>> execution.to_jsonapi()["data"]["attributes"]["status"]
            'ongoing'
        """
        return {
            "data": {
                "type": "executions",
                "id": self.id,
                "attributes": {
                    "uri": self.uri,
                    "status": self.status.value,
                    "created": self.created.isoformat(),
                    "validation-set": self.validation_set,
                },
            }
        }


@dataclass(frozen=True)
class Validation:
    """One rule's evaluation within one execution."""

    id: str
    uri: str
    name: str
    description: str
    status: ValidationStatus
    execution_uri: str

    def with_status(self, status: ValidationStatus) -> "Validation":
        return replace(self, status=status)


@dataclass(frozen=True)
class ValidationError:
    """A persisted violation, attributed to one execution and one validation.

    Records returned by the error recorder are not necessarily durable: a
    record missing a required field is returned but never written.
    """

    id: str
    uri: str
    message: Optional[str]
    execution_uri: Optional[str]
    validation_uri: Optional[str]

    @property
    def is_complete(self) -> bool:
        return bool(self.execution_uri and self.validation_uri and self.message)


@dataclass(frozen=True)
class ErrorDraft:
    """An error not yet written to the store."""

    execution_uri: Optional[str]
    validation_uri: Optional[str]
    message: Optional[str]


@dataclass(frozen=True)
class RuleOutcome:
    """Result of running one rule within an execution.

    Attributes:
        rule_name: Name of the rule.
        is_valid: True only when the rule ran and found no violations.
        status: Terminal status written to the rule's validation.
        error_count: Number of error records produced.
        detail: Failure description when the rule itself errored.
    """

    rule_name: str
    is_valid: bool
    status: ValidationStatus
    error_count: int = 0
    detail: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if not self.status.is_terminal:
            raise ValueError(f"Outcome status must be terminal, got {self.status.value}")
        if self.is_valid and self.status is not ValidationStatus.SUCCEEDED:
            raise ValueError("is_valid=True requires status validation-succeeded")
        if self.status is ValidationStatus.SUCCEEDED and self.error_count != 0:
            raise ValueError("validation-succeeded requires error_count=0")


@dataclass
class ExecutionReport:
    """Per-rule outcomes of an execution, in rule-set order.

    The report is informational. An execution finishes ``done`` even when
    every outcome failed; see ``ExecutionOrchestrator.perform``.
    """

    execution: Execution
    outcomes: List[RuleOutcome] = field(default_factory=list)

    def has_failures(self) -> bool:
        return any(not o.is_valid for o in self.outcomes)

    def get_failed_outcomes(self, status: Optional[ValidationStatus] = None) -> List[RuleOutcome]:
        """Return outcomes that are not valid, optionally filtered by status."""
        return [
            o for o in self.outcomes if not o.is_valid and (status is None or o.status is status)
        ]

    def get_error_count(self) -> int:
        """Total error records produced by all rules."""
        return sum(o.error_count for o in self.outcomes)

    def log_lines(self) -> List[str]:
        lines = [f"=== Validation report of execution {self.execution.uri} ==="]
        for o in self.outcomes:
            lines.append(f"[{'SUCCESS' if o.is_valid else 'FAILED'}] {o.rule_name}")
        lines.append("======")
        return lines

    def summary(self) -> str:
        """Generate a concise text summary.

        Examples:
            >>> print(report.summary())
            Execution Summary:
              Execution: http://.../executions/42
              Rules: 3 executed (1 succeeded, 1 found violations, 1 errored)
              Errors recorded: 5
        """
        total = len(self.outcomes)
        succeeded = sum(1 for o in self.outcomes if o.status is ValidationStatus.SUCCEEDED)
        violated = len(self.get_failed_outcomes(ValidationStatus.VALIDATION_FAILED))
        errored = len(self.get_failed_outcomes(ValidationStatus.FAILED))
        return (
            f"Execution Summary:\n"
            f"  Execution: {self.execution.uri}\n"
            f"  Rules: {total} executed ({succeeded} succeeded, {violated} found violations, "
            f"{errored} errored)\n"
            f"  Errors recorded: {self.get_error_count()}"
        )

    def to_console_summary(self) -> str:
        """Summary plus one line per rule that did not succeed."""
        lines = [self.summary(), ""]
        failed = self.get_failed_outcomes()
        if not failed:
            lines.append("✅ All validations succeeded!")
            return "\n".join(lines)

        lines.append("Rule Details:")
        for o in failed:
            if o.status is ValidationStatus.FAILED:
                lines.append(f"❌ {o.rule_name}: could not be evaluated")
                if o.detail:
                    lines.append(f"   - {o.detail}")
            else:
                lines.append(f"⚠️ {o.rule_name}: {o.error_count} violations")
        return "\n".join(lines)

    def to_json(self) -> str:
        """Generate a JSON document of the report."""
        report_data = {
            "execution": self.execution.to_jsonapi()["data"],
            "summary": {
                "total_rules": len(self.outcomes),
                "succeeded": sum(1 for o in self.outcomes if o.is_valid),
                "failed": len(self.get_failed_outcomes()),
                "errors": self.get_error_count(),
            },
            "outcomes": [
                {
                    "rule": o.rule_name,
                    "is_valid": o.is_valid,
                    "status": o.status.value,
                    "error_count": o.error_count,
                    "detail": o.detail,
                }
                for o in self.outcomes
            ],
        }
        return json.dumps(report_data, indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class ValidationSummary:
    """Counts of an execution's validations per status.

    This is the data-validity view of a run; the execution status only says
    whether the run completed.
    """

    execution_id: str
    counts: Dict[ValidationStatus, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def failed_count(self) -> int:
        return self.counts.get(ValidationStatus.VALIDATION_FAILED, 0) + self.counts.get(
            ValidationStatus.FAILED, 0
        )

    @property
    def is_clean(self) -> bool:
        return self.total > 0 and self.counts.get(ValidationStatus.SUCCEEDED, 0) == self.total

    def to_jsonapi(self) -> Dict[str, Any]:
        return {
            "data": {
                "type": "execution-summaries",
                "id": self.execution_id,
                "attributes": {
                    "total": self.total,
                    "failed": self.failed_count,
                    "clean": self.is_clean,
                    "statuses": {s.value: self.counts.get(s, 0) for s in ValidationStatus},
                },
            }
        }


__all__ = [
    "Execution",
    "Validation",
    "ValidationError",
    "ErrorDraft",
    "RuleOutcome",
    "ExecutionReport",
    "ValidationSummary",
]
