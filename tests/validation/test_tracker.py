"""Tests for the ValidationTracker lifecycle writes."""

from datetime import datetime, timezone

import pytest

from graph_validation.core.enums import ExecutionStatus, ValidationStatus
from graph_validation.validation.models import Execution, ValidationError
from graph_validation.validation.rules import SelectRule
from graph_validation.validation.tracker import ValidationTracker, resolve_status


@pytest.fixture
def execution(config):
    return Execution(
        id="e1",
        uri=config.resource_uri("executions", "e1"),
        status=ExecutionStatus.ONGOING,
        created=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def rule():
    return SelectRule(
        name="mandate-has-start",
        description="Every mandate has a start date",
        query="SELECT ?s WHERE { ?s a <http://x/Mandate> }",
        message="missing start",
    )


def _error():
    return ValidationError("x", "http://x/errors/x", "m", "http://x/e", "http://x/v")


@pytest.mark.parametrize(
    "errors, success, expected",
    [
        (None, True, ValidationStatus.SUCCEEDED),
        ([], True, ValidationStatus.SUCCEEDED),
        ("one", True, ValidationStatus.VALIDATION_FAILED),
        (None, False, ValidationStatus.FAILED),
        ("one", False, ValidationStatus.FAILED),
    ],
)
def test_resolve_status(errors, success, expected):
    if errors == "one":
        errors = [_error()]
    assert resolve_status(errors, success) is expected


@pytest.mark.asyncio
async def test_create_validation_links_to_execution(store, config, execution, rule):
    tracker = ValidationTracker(store, config)
    validation = await tracker.create_validation(rule, execution)

    assert validation.status is ValidationStatus.ONGOING
    assert validation.name == rule.name
    assert validation.description == rule.description
    assert validation.execution_uri == execution.uri
    assert validation.uri == config.resource_uri("validations", validation.id)

    assert len(store.updates) == 1
    call = store.updates[0]
    assert call.sudo is True
    assert f"<{validation.uri}> a validation:Validation" in call.statement
    assert 'validation:status "ongoing"' in call.statement
    assert f"<{execution.uri}> validation:performsValidation <{validation.uri}>" in call.statement


@pytest.mark.asyncio
async def test_create_validation_returns_fresh_record_per_call(store, config, execution, rule):
    tracker = ValidationTracker(store, config)
    first = await tracker.create_validation(rule, execution)
    second = await tracker.create_validation(rule, execution)
    assert first.uri != second.uri
    assert not hasattr(rule, "uri")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "errors, success, status",
    [
        ([], True, "validation-succeeded"),
        ("one", True, "validation-failed"),
        ([], False, "failed"),
    ],
)
async def test_finish_validation_replaces_status(
    store, config, execution, rule, errors, success, status
):
    if errors == "one":
        errors = [_error()]
    tracker = ValidationTracker(store, config)
    validation = await tracker.create_validation(rule, execution)

    finished = await tracker.finish_validation(validation, errors, success=success)

    assert finished.status.value == status
    assert finished.uri == validation.uri
    statement = store.updates[-1].statement
    assert f"<{validation.uri}> validation:status ?status" in statement
    assert "DELETE" in statement
    assert f'<{validation.uri}> validation:status "{status}"' in statement
