"""Boolean validation rule (SPARQL ASK).

The data is valid when the query answers ``true``. A ``false`` answer is one
violation, with a message rendered without parameters.
"""

from __future__ import annotations

import logging
from typing import List

from graph_validation.core.exceptions import RuleEvaluationError
from ..models import ValidationError
from . import EvaluationContext
from ._common import SparqlRule

logger = logging.getLogger(__name__)


class AskRule(SparqlRule):
    """Validation rule backed by a SPARQL ASK query."""

    async def evaluate(self, context: EvaluationContext) -> List[ValidationError]:
        logger.debug("Executing SPARQL ASK validation %s", self.name)
        result = await self._run_query(context.store)
        if "boolean" not in result:
            raise RuleEvaluationError(self.name, "ASK query returned no boolean result")
        if result["boolean"]:
            return []

        error = await context.recorder.insert_error(
            context.execution.uri, context.validation.uri, self._render()
        )
        return [error]


__all__ = ["AskRule"]
