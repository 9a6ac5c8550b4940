"""Tests for the SelectRule and AskRule variants."""

from datetime import datetime, timezone

import pytest

from conftest import ask_result, select_result
from graph_validation.core.enums import ExecutionStatus, ValidationStatus
from graph_validation.core.exceptions import RuleEvaluationError
from graph_validation.validation.errors import ErrorRecorder
from graph_validation.validation.messages import StaticMessage, TemplatedMessage
from graph_validation.validation.models import Execution, Validation
from graph_validation.validation.rules import AskRule, EvaluationContext, SelectRule

SELECT_QUERY = "SELECT ?s ?start WHERE { ?s <http://x/start> ?start }"
ASK_QUERY = "ASK { ?s a <http://x/Unit> }"


@pytest.fixture
def context(store, config):
    execution = Execution(
        id="e1",
        uri=config.resource_uri("executions", "e1"),
        status=ExecutionStatus.ONGOING,
        created=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    validation = Validation(
        id="v1",
        uri=config.resource_uri("validations", "v1"),
        name="rule",
        description="desc",
        status=ValidationStatus.ONGOING,
        execution_uri=execution.uri,
    )
    return EvaluationContext(
        execution=execution,
        validation=validation,
        store=store,
        recorder=ErrorRecorder(store, config),
    )


def _select_rule(message=None):
    return SelectRule(
        name="start-dates",
        description="Mandates start in the past",
        query=SELECT_QUERY,
        message=message or TemplatedMessage(lambda s, start: f"{s} starts {start}"),
    )


def _ask_rule(message="No units"):
    return AskRule(name="units", description="Units exist", query=ASK_QUERY, message=message)


@pytest.mark.asyncio
async def test_select_rule_without_rows_is_valid(store, context):
    store.responses[SELECT_QUERY] = select_result()
    assert await _select_rule().evaluate(context) == []
    assert store.updates == []
    assert store.queries[0].sudo is True


@pytest.mark.asyncio
async def test_select_rule_writes_one_error_per_row(store, context):
    rows = [{"s": f"http://x/m/{i}", "start": f"20{i:02d}-01-01"} for i in range(5)]
    store.responses[SELECT_QUERY] = select_result(*rows)

    errors = await _select_rule().evaluate(context)

    assert len(errors) == 5
    assert [e.message for e in errors] == [f"{r['s']} starts {r['start']}" for r in rows]
    assert all(e.execution_uri == context.execution.uri for e in errors)
    assert all(e.validation_uri == context.validation.uri for e in errors)
    assert len(store.updates) == 1
    assert store.updates[0].statement.count("a validation:Error") == 5


@pytest.mark.asyncio
async def test_select_rule_static_message_for_every_row(store, context):
    store.responses[SELECT_QUERY] = select_result({"s": "a"}, {"s": "b"})
    errors = await _select_rule(StaticMessage("bad mandate")).evaluate(context)
    assert [e.message for e in errors] == ["bad mandate", "bad mandate"]


@pytest.mark.asyncio
async def test_select_rule_propagates_query_failure(store, context):
    store.fail_on.append(SELECT_QUERY)
    with pytest.raises(RuleEvaluationError, match="start-dates"):
        await _select_rule().evaluate(context)
    assert store.updates == []


@pytest.mark.asyncio
async def test_select_rule_message_missing_variable_fails(store, context):
    store.responses[SELECT_QUERY] = select_result({"s": "a"})
    rule = _select_rule(TemplatedMessage.from_template("{s} has no {end}"))
    with pytest.raises(RuleEvaluationError, match="message rendering failed"):
        await rule.evaluate(context)


@pytest.mark.asyncio
async def test_ask_rule_true_is_valid(store, context):
    store.responses[ASK_QUERY] = ask_result(True)
    assert await _ask_rule().evaluate(context) == []
    assert store.updates == []


@pytest.mark.asyncio
async def test_ask_rule_false_writes_exactly_one_error(store, context):
    store.responses[ASK_QUERY] = ask_result(False)
    errors = await _ask_rule().evaluate(context)
    assert len(errors) == 1
    assert errors[0].message == "No units"
    assert len(store.updates) == 1


@pytest.mark.asyncio
async def test_ask_rule_calls_producer_without_params(store, context):
    store.responses[ASK_QUERY] = ask_result(False)
    errors = await _ask_rule(lambda: "computed message").evaluate(context)
    assert errors[0].message == "computed message"


@pytest.mark.asyncio
async def test_ask_rule_false_with_empty_message_is_still_a_violation(store, context):
    store.responses[ASK_QUERY] = ask_result(False)

    errors = await _ask_rule(lambda: "").evaluate(context)

    assert len(errors) == 1
    assert not errors[0].is_complete
    assert store.updates == []


@pytest.mark.asyncio
async def test_ask_rule_without_boolean_is_an_evaluation_error(store, context):
    store.responses[ASK_QUERY] = select_result()
    with pytest.raises(RuleEvaluationError, match="no boolean"):
        await _ask_rule().evaluate(context)


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"name": ""}, "requires a name"),
        ({"description": ""}, "requires a description"),
        ({"query": "  "}, "requires a query"),
        ({"message": ""}, "non-empty message"),
    ],
)
def test_rule_construction_checks_required_fields(kwargs, match):
    fields = {"name": "r", "description": "d", "query": ASK_QUERY, "message": "m"}
    fields.update(kwargs)
    with pytest.raises(ValueError, match=match):
        AskRule(**fields)


def test_rule_set_membership():
    rule = SelectRule(
        name="r",
        description="d",
        query=SELECT_QUERY,
        message="m",
        validation_sets=["http://x/set-X"],
    )
    assert rule.in_set("http://x/set-X")
    assert not rule.in_set("http://x/set-Y")
    assert rule.validation_sets == ("http://x/set-X",)
