"""Row-set validation rule (SPARQL SELECT).

The data is valid when the query returns no rows. Every returned row is one
violation; its message is rendered from the row's bound values, e.g.
``{"s": "http://data.lblod.info/id/mandatarissen/123", "start": "2018-12-01"}``.
"""

from __future__ import annotations

import logging
from typing import List

from graph_validation.core.sparql import binding_values, bindings
from ..models import ErrorDraft, ValidationError
from . import EvaluationContext
from ._common import SparqlRule

logger = logging.getLogger(__name__)


class SelectRule(SparqlRule):
    """Validation rule backed by a SPARQL SELECT query."""

    async def evaluate(self, context: EvaluationContext) -> List[ValidationError]:
        logger.debug("Executing SPARQL SELECT validation %s", self.name)
        rows = bindings(await self._run_query(context.store))
        if not rows:
            return []

        logger.info("Got %d errors for validation %s", len(rows), self.name)
        drafts = [
            ErrorDraft(
                execution_uri=context.execution.uri,
                validation_uri=context.validation.uri,
                message=self._render(binding_values(row)),
            )
            for row in rows
        ]
        return await context.recorder.insert_errors(drafts)


__all__ = ["SelectRule"]
