"""Tests for the HTTP interface, driven through Starlette's TestClient."""

import pytest
from starlette.testclient import TestClient

from conftest import FakeStore, ask_result, select_result
from graph_validation.interfaces.http.app import create_app
from graph_validation.service import ValidationService
from graph_validation.validation.registry import RuleCatalog
from graph_validation.validation.rules import AskRule, SelectRule

SET_X = "http://data.lblod.info/id/validation-set/set-X"


@pytest.fixture
def catalog():
    return RuleCatalog(
        [
            SelectRule(
                name="mandate-start",
                description="Mandates have a start",
                query="SELECT ?s WHERE { ?s a <http://x/Mandate> }",
                message="{s} has no start",
                validation_sets=(SET_X,),
            ),
            AskRule(
                name="units-present",
                description="Units exist",
                query="ASK { ?s a <http://x/Unit> }",
                message="No units",
            ),
        ]
    )


@pytest.fixture
def store():
    fake = FakeStore()
    fake.responses["<http://x/Unit>"] = ask_result(True)
    return fake


@pytest.fixture
def service(config, catalog, store):
    return ValidationService(config, catalog, store=store)


def _execution_id(response) -> str:
    location = response.headers["location"]
    assert location.startswith("/executions/")
    return location.rsplit("/", 1)[-1]


def test_startup_cancels_interrupted_executions(service, store):
    with TestClient(create_app(service)):
        pass
    recover = store.updates_with('validation:status "cancelled"')
    assert len(recover) == 1
    assert 'FILTER(?status = "ongoing")' in recover[0].statement


def test_post_execution_accepts_and_runs_in_background(service, store):
    with TestClient(create_app(service)) as client:
        response = client.post("/executions")
        assert response.status_code == 202
        execution_id = _execution_id(response)

    # Shutdown waits for running executions
    assert store.updates_with(f'mu:uuid "{execution_id}"', 'validation:status "ongoing"')
    assert store.updates_with(f'mu:uuid "{execution_id}"', 'validation:status "done"')
    assert len(store.updates_with("a validation:Validation ;", "validation:name")) == 2


def test_post_execution_with_validation_set(service, store):
    with TestClient(create_app(service)) as client:
        response = client.post("/executions", json={"validation-set": SET_X})
        assert response.status_code == 202

    created = store.updates_with("a validation:Execution")
    assert f"validation:validationSet <{SET_X}>" in created[0].statement
    validations = store.updates_with("a validation:Validation ;", "validation:name")
    assert len(validations) == 1
    assert 'validation:name "mandate-start"' in validations[0].statement


@pytest.mark.parametrize("body", ["not json", "[1, 2]"])
def test_post_execution_rejects_invalid_body(service, store, body):
    with TestClient(create_app(service)) as client:
        response = client.post(
            "/executions", content=body, headers={"Content-Type": "application/json"}
        )
    assert response.status_code == 400
    assert response.json()["errors"][0]["status"] == "400"
    assert store.updates_with("a validation:Execution") == []


@pytest.mark.parametrize("validation_set", ["set X", "http://x/<set>", 42])
def test_post_execution_rejects_invalid_validation_set(service, store, validation_set):
    with TestClient(create_app(service)) as client:
        response = client.post("/executions", json={"validation-set": validation_set})
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/vnd.api+json")
    assert response.json()["errors"][0]["status"] == "400"
    assert store.updates_with("a validation:Execution") == []


def test_post_execution_store_failure(service, store):
    store.fail_on.append("a validation:Execution")
    with TestClient(create_app(service)) as client:
        response = client.post("/executions")
    assert response.status_code == 500
    assert response.json()["errors"][0]["title"] == "Could not create execution"
    assert service.pending == 0


def test_get_unknown_execution_is_404(service):
    with TestClient(create_app(service)) as client:
        response = client.get("/executions/unknown-id")
    assert response.status_code == 404


def test_get_execution_returns_document(service, store, config):
    uri = config.resource_uri("executions", "abc")
    store.responses['mu:uuid "abc"'] = select_result(
        {"uri": uri, "status": "failed", "created": "2024-05-01T10:00:00Z"}
    )
    with TestClient(create_app(service)) as client:
        response = client.get("/executions/abc")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.api+json")
    data = response.json()["data"]
    assert data["id"] == "abc"
    assert data["attributes"]["status"] == "failed"
    assert data["attributes"]["uri"] == uri


def test_get_execution_store_failure_is_500(service, store):
    store.fail_on.append('mu:uuid "abc"')
    with TestClient(create_app(service)) as client:
        response = client.get("/executions/abc")
    assert response.status_code == 500


def test_get_summary(service, store, config):
    store.responses['mu:uuid "abc"'] = select_result(
        {
            "uri": config.resource_uri("executions", "abc"),
            "status": "done",
            "created": "2024-05-01T10:00:00Z",
        }
    )
    store.responses["GROUP BY ?status"] = select_result(
        {"status": "validation-succeeded", "count": "1"},
        {"status": "validation-failed", "count": "1"},
    )
    with TestClient(create_app(service)) as client:
        response = client.get("/executions/abc/summary")
        missing = client.get("/executions/nope/summary")

    assert response.status_code == 200
    attributes = response.json()["data"]["attributes"]
    assert attributes["total"] == 2
    assert attributes["failed"] == 1
    assert attributes["clean"] is False
    assert missing.status_code == 404
