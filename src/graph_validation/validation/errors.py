"""Error recorder: persists validation error records.

Errors are written singly (boolean rules) or in bulk (row-set rules). Bulk
writes are split into batches of ``ServiceConfig.error_batch_size`` records, one
``INSERT DATA`` per batch.

A record missing its execution, validation or message is never written. It
is logged and dropped rather than failing the rule that produced it.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from graph_validation.config import ServiceConfig
from graph_validation.core.exceptions import MalformedErrorRecord
from graph_validation.core.sparql import PREFIXES, escape_string, escape_uri, new_id
from graph_validation.store.client import StoreClient
from .models import ErrorDraft, ValidationError

logger = logging.getLogger(__name__)


def _error_triples(error: ValidationError) -> str:
    return (
        f"{escape_uri(error.uri)} a validation:Error ;\n"
        f"  mu:uuid {escape_string(error.id)} ;\n"
        f"  validation:producedBy {escape_uri(error.execution_uri)} ;\n"
        f"  validation:validation {escape_uri(error.validation_uri)} ;\n"
        f"  validation:message {escape_string(error.message)} ."
    )


def _check_complete(error: ValidationError) -> None:
    missing = [
        name
        for name, value in (
            ("execution", error.execution_uri),
            ("validation", error.validation_uri),
            ("message", error.message),
        )
        if not value
    ]
    if missing:
        raise MalformedErrorRecord(f"error {error.uri} is missing {', '.join(missing)}")


def _chunks(items: Sequence[ErrorDraft], size: int) -> Iterable[Sequence[ErrorDraft]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ErrorRecorder:
    """Write ``ValidationError`` records to the application graph."""

    def __init__(self, store: StoreClient, config: ServiceConfig) -> None:
        self.store = store
        self.config = config

    def _new_error(self, draft: ErrorDraft) -> ValidationError:
        error_id = new_id()
        return ValidationError(
            id=error_id,
            uri=self.config.resource_uri("errors", error_id),
            message=draft.message,
            execution_uri=draft.execution_uri,
            validation_uri=draft.validation_uri,
        )

    def _insert_statement(self, triples: List[str]) -> str:
        body = "\n".join(triples)
        return (
            f"{PREFIXES}\n"
            f"INSERT DATA {{\n"
            f"  GRAPH {escape_uri(self.config.application_graph)} {{\n"
            f"{body}\n"
            f"  }}\n"
            f"}}"
        )

    async def insert_error(
        self,
        execution_uri: Optional[str],
        validation_uri: Optional[str],
        message: Optional[str],
    ) -> ValidationError:
        """Insert a single validation error.

        Args:
            execution_uri: Execution that produced the error.
            validation_uri: Validation that detected the error.
            message: Rendered error message.

        Returns:
            The error record. When a field was missing the record is returned
            but not written (``is_complete`` is False).

        Raises:
            PersistenceError: If the store rejects the write.
        """
        error = self._new_error(ErrorDraft(execution_uri, validation_uri, message))
        try:
            _check_complete(error)
        except MalformedErrorRecord as e:
            logger.error("%s. This error will not be persisted.", e)
            return error

        await self.store.update_sudo(self._insert_statement([_error_triples(error)]))
        return error

    async def insert_errors(self, drafts: Sequence[ErrorDraft]) -> List[ValidationError]:
        """Insert validation errors in bulk, one write per batch.

        Every draft is returned as a ``ValidationError``, including drafts
        that were skipped for missing fields; callers must not assume each
        returned record was written.

        Raises:
            PersistenceError: If the store rejects a batch. Earlier batches
                stay written.
        """
        created: List[ValidationError] = []
        batch_size = self.config.error_batch_size
        for batch_no, batch in enumerate(_chunks(list(drafts), batch_size), start=1):
            triples: List[str] = []
            for draft in batch:
                error = self._new_error(draft)
                try:
                    _check_complete(error)
                except MalformedErrorRecord as e:
                    logger.error("%s. This error will not be persisted.", e)
                else:
                    triples.append(_error_triples(error))
                created.append(error)

            if not triples:
                logger.warning("Batch %d has no complete error records", batch_no)
            logger.debug("Writing error batch %d (%d records)", batch_no, len(triples))
            await self.store.update_sudo(self._insert_statement(triples))

        return created


__all__ = ["ErrorRecorder"]
