"""Validation tracker: lifecycle of one rule's validation record."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from graph_validation.config import ServiceConfig
from graph_validation.core.enums import ValidationStatus
from graph_validation.core.sparql import PREFIXES, escape_string, escape_uri, new_id
from graph_validation.store.client import StoreClient
from .models import Execution, Validation, ValidationError
from .rules import ValidationRule

logger = logging.getLogger(__name__)


def resolve_status(errors: Optional[Sequence[ValidationError]], success: bool) -> ValidationStatus:
    """Terminal status for a validation.

    ``FAILED`` when the check errored, otherwise ``VALIDATION_FAILED`` if it
    produced errors and ``SUCCEEDED`` if it did not.
    """
    if not success:
        return ValidationStatus.FAILED
    if errors:
        return ValidationStatus.VALIDATION_FAILED
    return ValidationStatus.SUCCEEDED


class ValidationTracker:
    """Create and finalize ``Validation`` records bound to an execution."""

    def __init__(self, store: StoreClient, config: ServiceConfig) -> None:
        self.store = store
        self.config = config

    async def create_validation(self, rule: ValidationRule, execution: Execution) -> Validation:
        """Insert an ongoing validation for ``rule`` linked to ``execution``.

        Raises:
            PersistenceError: If the store rejects the write.
        """
        validation_id = new_id()
        validation = Validation(
            id=validation_id,
            uri=self.config.resource_uri("validations", validation_id),
            name=rule.name,
            description=rule.description,
            status=ValidationStatus.ONGOING,
            execution_uri=execution.uri,
        )
        graph = escape_uri(self.config.application_graph)
        await self.store.update_sudo(
            f"{PREFIXES}\n"
            f"INSERT DATA {{\n"
            f"  GRAPH {graph} {{\n"
            f"    {escape_uri(validation.uri)} a validation:Validation ;\n"
            f"      mu:uuid {escape_string(validation.id)} ;\n"
            f"      validation:name {escape_string(validation.name)} ;\n"
            f"      validation:description {escape_string(validation.description)} ;\n"
            f"      validation:status {escape_string(validation.status.value)} .\n"
            f"    {escape_uri(execution.uri)} validation:performsValidation "
            f"{escape_uri(validation.uri)} .\n"
            f"  }}\n"
            f"}}"
        )
        logger.debug("Created validation %s for rule %s", validation.uri, rule.name)
        return validation

    async def finish_validation(
        self,
        validation: Validation,
        errors: Optional[Sequence[ValidationError]] = None,
        success: bool = True,
    ) -> Validation:
        """Replace the validation's status with its terminal value.

        Args:
            validation: Validation to finish.
            errors: Errors the rule produced.
            success: Whether the rule itself ran without failing.

        Returns:
            The validation carrying its new status.
        """
        status = resolve_status(errors, success)
        graph = escape_uri(self.config.application_graph)
        subject = escape_uri(validation.uri)
        await self.store.update_sudo(
            f"{PREFIXES}\n"
            f"DELETE {{\n"
            f"  GRAPH {graph} {{ {subject} validation:status ?status . }}\n"
            f"}} WHERE {{\n"
            f"  GRAPH {graph} {{ {subject} a validation:Validation ; validation:status ?status . }}\n"
            f"}} ;\n"
            f"INSERT DATA {{\n"
            f"  GRAPH {graph} {{ {subject} validation:status {escape_string(status.value)} . }}\n"
            f"}}"
        )
        logger.debug("Validation %s finished with status %s", validation.uri, status.value)
        return validation.with_status(status)


__all__ = ["ValidationTracker", "resolve_status"]
