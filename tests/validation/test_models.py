"""Unit tests for validation models."""

import json
from datetime import datetime, timezone

import pytest

from graph_validation.core.enums import ExecutionStatus, ValidationStatus
from graph_validation.validation.models import (
    Execution,
    ExecutionReport,
    RuleOutcome,
    ValidationError,
    ValidationSummary,
)


@pytest.fixture
def execution():
    return Execution(
        id="42",
        uri="http://x/executions/42",
        status=ExecutionStatus.DONE,
        created=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_outcome_status_must_be_terminal():
    with pytest.raises(ValueError, match="terminal"):
        RuleOutcome(rule_name="r", is_valid=False, status=ValidationStatus.ONGOING)


def test_valid_outcome_requires_succeeded_status():
    with pytest.raises(ValueError, match="is_valid=True"):
        RuleOutcome(rule_name="r", is_valid=True, status=ValidationStatus.VALIDATION_FAILED)


def test_succeeded_outcome_has_no_errors():
    with pytest.raises(ValueError, match="error_count=0"):
        RuleOutcome(rule_name="r", is_valid=False, status=ValidationStatus.SUCCEEDED, error_count=1)


def test_error_completeness():
    assert ValidationError("1", "u", "m", "e", "v").is_complete
    assert not ValidationError("1", "u", "", "e", "v").is_complete
    assert not ValidationError("1", "u", "m", None, "v").is_complete
    assert not ValidationError("1", "u", "m", "e", None).is_complete


def test_execution_jsonapi(execution):
    doc = execution.to_jsonapi()
    assert doc == {
        "data": {
            "type": "executions",
            "id": "42",
            "attributes": {
                "uri": "http://x/executions/42",
                "status": "done",
                "created": "2024-03-01T12:00:00+00:00",
                "validation-set": None,
            },
        }
    }


def test_report_log_lines(execution):
    report = ExecutionReport(
        execution=execution,
        outcomes=[
            RuleOutcome("a", True, ValidationStatus.SUCCEEDED),
            RuleOutcome("b", False, ValidationStatus.VALIDATION_FAILED, error_count=3),
        ],
    )
    assert report.log_lines() == [
        "=== Validation report of execution http://x/executions/42 ===",
        "[SUCCESS] a",
        "[FAILED] b",
        "======",
    ]


def test_clean_report(execution):
    report = ExecutionReport(execution, [RuleOutcome("a", True, ValidationStatus.SUCCEEDED)])
    assert not report.has_failures()
    assert "All validations succeeded" in report.to_console_summary()


def test_report_json(execution):
    report = ExecutionReport(
        execution=execution,
        outcomes=[
            RuleOutcome("a", True, ValidationStatus.SUCCEEDED),
            RuleOutcome("b", False, ValidationStatus.FAILED, detail="store down"),
        ],
    )
    data = json.loads(report.to_json())
    assert data["execution"]["id"] == "42"
    assert data["summary"] == {"total_rules": 2, "succeeded": 1, "failed": 1, "errors": 0}
    assert data["outcomes"][1]["status"] == "failed"
    assert data["outcomes"][1]["detail"] == "store down"
    assert [o.rule_name for o in report.get_failed_outcomes(ValidationStatus.FAILED)] == ["b"]
    assert report.get_failed_outcomes(ValidationStatus.VALIDATION_FAILED) == []


def test_summary_of_empty_execution_is_not_clean():
    summary = ValidationSummary("e", {})
    assert summary.total == 0
    assert not summary.is_clean


def test_summary_all_succeeded_is_clean():
    summary = ValidationSummary("e", {ValidationStatus.SUCCEEDED: 3})
    assert summary.is_clean
    assert summary.failed_count == 0
    assert summary.to_jsonapi()["data"]["attributes"]["clean"] is True
