"""Validation rules base interface.

This module defines the protocol all validation rules implement. A rule is a
predicate over the graph store: it runs a query, turns what it finds into
error records, and returns those records.

Two built-in variants exist:

- ``SelectRule``: a SELECT query; every returned row is one violation.
- ``AskRule``: an ASK query; ``false`` is one violation.

To write a custom rule, implement the protocol (no base class needed) and
list it in a rules module (see ``registry.RuleCatalog.from_module``):

    ```python
    class OrphanMandatesRule:
        name = "orphan-mandates"
        description = "Every mandate belongs to a body"
        validation_sets = ("http://data.lblod.info/id/validation-set/mandates",)
        message = StaticMessage("Orphan mandates found")

        def in_set(self, set_uri):
            return set_uri in self.validation_sets

        async def evaluate(self, context):
            result = await context.store.query_sudo(QUERY)
            ...
            return errors
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence, TYPE_CHECKING

from ..messages import Message
from ..models import Execution, Validation, ValidationError

if TYPE_CHECKING:
    from graph_validation.store.client import StoreClient
    from ..errors import ErrorRecorder


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a rule needs to evaluate within one execution."""

    execution: Execution
    validation: Validation
    store: "StoreClient"
    recorder: "ErrorRecorder"


class ValidationRule(Protocol):
    """Protocol defining the interface for validation rules.

    Attributes:
        name: Unique rule name, copied to each validation record.
        description: Human description, copied to each validation record.
        validation_sets: IRIs of the validation sets the rule belongs to.
        message: Producer of error messages.
    """

    name: str
    description: str
    validation_sets: Sequence[str]
    message: Message

    def in_set(self, set_uri: str) -> bool:
        """Return True if the rule is a member of the given validation set."""
        ...

    async def evaluate(self, context: EvaluationContext) -> List[ValidationError]:
        """Run the rule and persist one error per violation.

        Returns:
            The error records produced; an empty list means no violations.

        Raises:
            RuleEvaluationError: If the query or message rendering fails.
        """
        ...


from .ask import AskRule  # noqa: E402
from .select import SelectRule  # noqa: E402

__all__ = ["ValidationRule", "EvaluationContext", "SelectRule", "AskRule"]
