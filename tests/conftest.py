"""Shared pytest configuration, fixtures and fakes for the validation service."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

from graph_validation.config import ServiceConfig
from graph_validation.core.exceptions import PersistenceError

GRAPH = "http://mu.semte.ch/graphs/test"
RESOURCE_BASE = "http://mu.semte.ch/services/validation-service/"


def select_result(*rows: Dict[str, str]) -> Dict[str, Any]:
    """Build a SPARQL JSON SELECT result from plain ``{var: value}`` rows."""
    return {
        "head": {"vars": sorted({k for row in rows for k in row})},
        "results": {
            "bindings": [
                {k: {"type": "literal", "value": v} for k, v in row.items()} for row in rows
            ]
        },
    }


def ask_result(answer: bool) -> Dict[str, Any]:
    return {"head": {}, "boolean": answer}


@dataclass
class Call:
    statement: str
    sudo: bool


@dataclass
class FakeStore:
    """In-memory ``StoreClient`` that records statements.

    ``responses`` maps a substring of a query to its result (first match
    wins). ``fail_on`` makes any statement containing one of its substrings
    raise ``PersistenceError``.
    """

    responses: Dict[str, Any] = field(default_factory=dict)
    fail_on: List[str] = field(default_factory=list)
    queries: List[Call] = field(default_factory=list)
    updates: List[Call] = field(default_factory=list)
    on_query: Optional[Callable[[str], Any]] = None

    def _check(self, statement: str) -> None:
        for needle in self.fail_on:
            if needle in statement:
                raise PersistenceError(f"store failure on {needle}", status_code=500)

    async def _answer(self, statement: str) -> Dict[str, Any]:
        self._check(statement)
        if self.on_query is not None:
            hook = self.on_query(statement)
            if hook is not None:
                await hook
        for needle, result in self.responses.items():
            if needle in statement:
                return result
        return select_result()

    async def query(self, statement: str) -> Dict[str, Any]:
        self.queries.append(Call(statement, False))
        return await self._answer(statement)

    async def query_sudo(self, statement: str) -> Dict[str, Any]:
        self.queries.append(Call(statement, True))
        return await self._answer(statement)

    async def update(self, statement: str) -> None:
        self._check(statement)
        self.updates.append(Call(statement, False))

    async def update_sudo(self, statement: str) -> None:
        self._check(statement)
        self.updates.append(Call(statement, True))

    def updates_with(self, *needles: str) -> List[Call]:
        return [c for c in self.updates if all(n in c.statement for n in needles)]


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(application_graph=GRAPH, resource_base=RESOURCE_BASE)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
