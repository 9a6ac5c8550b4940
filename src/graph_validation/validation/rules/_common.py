"""Shared base for the SPARQL-backed rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple, Union

from graph_validation.core.exceptions import PersistenceError, RuleEvaluationError
from ..messages import Message, StaticMessage, as_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparqlRule:
    """A rule defined by a single SPARQL query.

    ``message`` accepts a plain string or a callable for convenience and is
    normalized into a ``Message`` on construction.
    """

    name: str
    description: str
    query: str
    message: Union[Message, str, Callable[..., str]]
    validation_sets: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Validation rule requires a name")
        if not self.description:
            raise ValueError(f"Validation rule '{self.name}' requires a description")
        if not self.query or not self.query.strip():
            raise ValueError(f"Validation rule '{self.name}' requires a query")
        message = as_message(self.message)
        if isinstance(message, StaticMessage) and not message.text:
            raise ValueError(f"Validation rule '{self.name}' requires a non-empty message")
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "validation_sets", tuple(self.validation_sets))

    def in_set(self, set_uri: str) -> bool:
        return set_uri in self.validation_sets

    async def _run_query(self, store: Any) -> Dict[str, Any]:
        try:
            return await store.query_sudo(self.query)
        except PersistenceError as e:
            logger.error("Error during SPARQL query of validation %s: %s", self.name, e)
            raise RuleEvaluationError(self.name, str(e)) from e

    def _render(self, params: Any = None) -> str:
        try:
            return self.message.render(params)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Cannot render message of validation %s: %r", self.name, e)
            raise RuleEvaluationError(self.name, f"message rendering failed: {e!r}") from e
