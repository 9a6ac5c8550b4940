"""Service wiring shared by the HTTP app and the CLI."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set, Tuple

from graph_validation.config import ServiceConfig
from graph_validation.store.client import SparqlStoreClient, StoreClient
from graph_validation.validation.executions import ExecutionManager
from graph_validation.validation.models import Execution, ExecutionReport
from graph_validation.validation.registry import RuleCatalog
from graph_validation.validation.runner import ExecutionOrchestrator

logger = logging.getLogger(__name__)


class ValidationService:
    """Bundle the configured components and track background executions."""

    def __init__(
        self,
        config: ServiceConfig,
        catalog: RuleCatalog,
        store: Optional[StoreClient] = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.store: StoreClient = store or SparqlStoreClient(config)
        self.executions = ExecutionManager(self.store, config)
        self.orchestrator = ExecutionOrchestrator(self.store, config, executions=self.executions)
        self._pending: Set["asyncio.Task[Optional[ExecutionReport]]"] = set()

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "ValidationService":
        return cls(config, RuleCatalog.load(config.rules_path))

    async def startup(self) -> None:
        """Log the catalog and cancel executions interrupted by a previous crash."""
        self.catalog.log_configured()
        await self.executions.recover_on_startup()

    async def trigger(self, validation_set: Optional[str] = None) -> Execution:
        """Create an execution and start it in the background.

        Raises:
            PersistenceError: If the execution cannot be created. Nothing is
                started in that case.
        """
        rules = self.catalog.for_set(validation_set)
        execution = await self.executions.create_execution(validation_set)
        task = asyncio.create_task(
            self.orchestrator.perform(execution, rules), name=f"execution-{execution.id}"
        )
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return execution

    async def run(
        self, validation_set: Optional[str] = None
    ) -> Tuple[Execution, Optional[ExecutionReport]]:
        """Create an execution and wait for it to finish."""
        rules = self.catalog.for_set(validation_set)
        execution = await self.executions.create_execution(validation_set)
        report = await self.orchestrator.perform(execution, rules)
        return execution, report

    def _task_done(self, task: "asyncio.Task[Optional[ExecutionReport]]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Background %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background %s failed: %s", task.get_name(), exc, exc_info=exc
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def wait_for_pending(self) -> None:
        """Wait until every background execution has finished."""
        while self._pending:
            await asyncio.wait(set(self._pending))

    async def aclose(self) -> None:
        await self.wait_for_pending()
        close = getattr(self.store, "aclose", None)
        if close is not None:
            await close()


__all__ = ["ValidationService"]
