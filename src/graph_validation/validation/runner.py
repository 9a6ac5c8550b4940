"""Execution orchestrator.

Runs a rule set for one execution:

1. every rule runs concurrently as its own task: create its validation,
   evaluate the rule, finalize the validation;
2. a failure inside one rule's task is logged and recorded as a ``failed``
   validation for that rule only;
3. once all tasks are done, the per-rule report is logged;
4. the execution is finished ``done``, or ``failed`` only when the
   orchestration itself broke (e.g. the rule set could not be iterated).

The execution status therefore says whether the run completed, not whether the
data is valid. Data validity lives in the validation statuses and error
records (see ``ExecutionManager.summarize_validations``).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncContextManager, Iterable, List, Optional

from graph_validation.config import ServiceConfig
from graph_validation.core.enums import ValidationStatus
from graph_validation.core.exceptions import PersistenceError
from graph_validation.store.client import StoreClient
from .errors import ErrorRecorder
from .executions import ExecutionManager
from .models import Execution, ExecutionReport, RuleOutcome, Validation
from .rules import EvaluationContext, ValidationRule
from .tracker import ValidationTracker

logger = logging.getLogger(__name__)


class ExecutionOrchestrator:
    """Fan a rule set out over concurrent tasks and finish the execution."""

    def __init__(
        self,
        store: StoreClient,
        config: ServiceConfig,
        executions: Optional[ExecutionManager] = None,
        tracker: Optional[ValidationTracker] = None,
        recorder: Optional[ErrorRecorder] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.executions = executions or ExecutionManager(store, config)
        self.tracker = tracker or ValidationTracker(store, config)
        self.recorder = recorder or ErrorRecorder(store, config)
        # Shared by all executions of this orchestrator, so the cap bounds the
        # total load on the store.
        self._semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(config.max_concurrency) if config.max_concurrency else None
        )

    def _slot(self) -> AsyncContextManager[object]:
        if self._semaphore is None:
            return contextlib.nullcontext()
        return self._semaphore

    async def perform(
        self, execution: Execution, rules: Iterable[ValidationRule]
    ) -> Optional[ExecutionReport]:
        """Run ``rules`` for ``execution`` and finish the execution.

        Args:
            execution: The ongoing execution to run.
            rules: Rules to evaluate. No order or priority is implied.

        Returns:
            The per-rule report, or None when the orchestration itself failed
            and the execution was finished as ``failed``.
        """
        try:
            selected: List[ValidationRule] = list(rules)
            logger.info("Execution %s: running %d validations", execution.id, len(selected))
            outcomes = await asyncio.gather(*(self._run_rule(execution, r) for r in selected))
            report = ExecutionReport(execution=execution, outcomes=list(outcomes))

            for line in report.log_lines():
                logger.info(line)

            await self.executions.finish_execution(execution.id)
            return report
        except Exception as e:  # noqa: BLE001 - any orchestration failure fails the execution
            logger.exception("Error during execution %s: %s", execution.id, e)
            await self.executions.finish_execution(execution.id, success=False)
            return None

    async def _run_rule(self, execution: Execution, rule: ValidationRule) -> RuleOutcome:
        """Create, evaluate and finalize one rule. Never raises."""
        async with self._slot():
            validation: Optional[Validation] = None
            try:
                validation = await self.tracker.create_validation(rule, execution)
                context = EvaluationContext(
                    execution=execution,
                    validation=validation,
                    store=self.store,
                    recorder=self.recorder,
                )
                errors = await rule.evaluate(context)
                finished = await self.tracker.finish_validation(validation, errors)
                return RuleOutcome(
                    rule_name=rule.name,
                    is_valid=not errors,
                    status=finished.status,
                    error_count=len(errors),
                )
            except Exception as e:  # noqa: BLE001 - one rule never affects its siblings
                logger.error("Error while executing validation %s: %s", rule.name, e)
                if validation is not None:
                    await self._mark_failed(validation)
                return RuleOutcome(
                    rule_name=rule.name,
                    is_valid=False,
                    status=ValidationStatus.FAILED,
                    detail=str(e),
                )

    async def _mark_failed(self, validation: Validation) -> None:
        try:
            await self.tracker.finish_validation(validation, success=False)
        except PersistenceError as e:
            logger.error("Could not mark validation %s as failed: %s", validation.uri, e)


__all__ = ["ExecutionOrchestrator"]
