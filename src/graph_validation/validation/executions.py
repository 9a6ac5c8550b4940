"""Execution manager: create, look up, finish and recover executions.

Execution status is one of "ongoing", "done", "failed" or "cancelled". Only
this module writes it. Status updates are value-based DELETE/INSERT
replacements, so retrying one is harmless.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from graph_validation.config import ServiceConfig
from graph_validation.core.enums import ExecutionStatus, ValidationStatus
from graph_validation.core.exceptions import NotFoundError, PersistenceError
from graph_validation.core.sparql import (
    PREFIXES,
    bindings,
    escape_datetime,
    escape_string,
    escape_uri,
    new_id,
    parse_datetime,
)
from graph_validation.store.client import StoreClient
from .models import Execution, ValidationSummary

logger = logging.getLogger(__name__)


class ExecutionManager:
    """Owns the persisted ``Execution`` records."""

    def __init__(self, store: StoreClient, config: ServiceConfig) -> None:
        self.store = store
        self.config = config

    @property
    def _graph(self) -> str:
        return escape_uri(self.config.application_graph)

    async def create_execution(self, validation_set: Optional[str] = None) -> Execution:
        """Insert a new ongoing execution.

        Args:
            validation_set: Optional IRI of the validation set to run.

        Returns:
            The new execution.

        Raises:
            PersistenceError: If the store rejects the write.
        """
        execution_id = new_id()
        execution = Execution(
            id=execution_id,
            uri=self.config.resource_uri("executions", execution_id),
            status=ExecutionStatus.ONGOING,
            created=datetime.now(timezone.utc),
            validation_set=validation_set,
        )
        set_prop = (
            f"      validation:validationSet {escape_uri(validation_set)} ;\n"
            if validation_set
            else ""
        )
        await self.store.update(
            f"{PREFIXES}\n"
            f"INSERT DATA {{\n"
            f"  GRAPH {self._graph} {{\n"
            f"    {escape_uri(execution.uri)} a validation:Execution ;\n"
            f"      mu:uuid {escape_string(execution.id)} ;\n"
            f"      validation:status {escape_string(execution.status.value)} ;\n"
            f"{set_prop}"
            f"      dct:created {escape_datetime(execution.created)} .\n"
            f"  }}\n"
            f"}}"
        )
        logger.info("Created execution %s", execution.uri)
        return execution

    async def get_execution(self, execution_id: str) -> Execution:
        """Load an execution by identifier.

        Raises:
            NotFoundError: If no execution has this identifier.
            PersistenceError: If the store query fails.
        """
        result = await self.store.query(
            f"{PREFIXES}\n"
            f"SELECT ?uri ?status ?created ?validationSet WHERE {{\n"
            f"  GRAPH {self._graph} {{\n"
            f"    ?uri a validation:Execution ;\n"
            f"      mu:uuid {escape_string(execution_id)} ;\n"
            f"      validation:status ?status ;\n"
            f"      dct:created ?created .\n"
            f"    OPTIONAL {{ ?uri validation:validationSet ?validationSet . }}\n"
            f"  }}\n"
            f"}} LIMIT 1"
        )
        rows = bindings(result)
        if not rows:
            raise NotFoundError("Execution", execution_id)

        row = rows[0]
        try:
            status = ExecutionStatus(row["status"]["value"])
        except ValueError as e:
            raise PersistenceError(
                f"Execution {execution_id} has unknown status {row['status']['value']!r}"
            ) from e
        return Execution(
            id=execution_id,
            uri=row["uri"]["value"],
            status=status,
            created=parse_datetime(row["created"]["value"]),
            validation_set=row.get("validationSet", {}).get("value"),
        )

    async def finish_execution(self, execution_id: str, success: bool = True) -> ExecutionStatus:
        """Replace the status of an execution with ``done`` or ``failed``.

        Args:
            execution_id: Identifier of the execution.
            success: Whether the orchestration completed.

        Returns:
            The status written.
        """
        status = ExecutionStatus.DONE if success else ExecutionStatus.FAILED
        await self.store.update(
            f"{PREFIXES}\n"
            f"WITH {self._graph}\n"
            f"DELETE {{ ?s validation:status ?status . }}\n"
            f"INSERT {{ ?s validation:status {escape_string(status.value)} . }}\n"
            f"WHERE {{\n"
            f"  ?s a validation:Execution ;\n"
            f"    mu:uuid {escape_string(execution_id)} ;\n"
            f"    validation:status ?status .\n"
            f"}}"
        )
        logger.info("Execution %s finished with status %s", execution_id, status.value)
        return status

    async def recover_on_startup(self) -> None:
        """Mark every execution still ``ongoing`` as ``cancelled``.

        Run once at process start, before requests are accepted. An ongoing
        execution at that point was interrupted by a previous crash. The
        validations of those executions are left as they are.
        """
        await self.store.update(
            f"{PREFIXES}\n"
            f"WITH {self._graph}\n"
            f"DELETE {{ ?s validation:status ?status . }}\n"
            f"INSERT {{ ?s validation:status "
            f"{escape_string(ExecutionStatus.CANCELLED.value)} . }}\n"
            f"WHERE {{\n"
            f"  ?s a validation:Execution ;\n"
            f"    validation:status ?status .\n"
            f"  FILTER(?status = {escape_string(ExecutionStatus.ONGOING.value)})\n"
            f"}}"
        )
        logger.info("Cancelled executions left ongoing by a previous run")

    async def summarize_validations(self, execution_id: str) -> ValidationSummary:
        """Count the validations of an execution per status.

        Raises:
            NotFoundError: If no execution has this identifier.
        """
        execution = await self.get_execution(execution_id)
        result = await self.store.query_sudo(
            f"{PREFIXES}\n"
            f"SELECT ?status (COUNT(DISTINCT ?validation) AS ?count) WHERE {{\n"
            f"  GRAPH {self._graph} {{\n"
            f"    {escape_uri(execution.uri)} validation:performsValidation ?validation .\n"
            f"    ?validation validation:status ?status .\n"
            f"  }}\n"
            f"}} GROUP BY ?status"
        )
        counts: Dict[ValidationStatus, int] = {}
        for row in bindings(result):
            raw = row["status"]["value"]
            try:
                status = ValidationStatus(raw)
            except ValueError:
                logger.warning("Ignoring unknown validation status %r on %s", raw, execution.uri)
                continue
            counts[status] = int(row["count"]["value"])
        return ValidationSummary(execution_id=execution.id, counts=counts)


__all__ = ["ExecutionManager"]
