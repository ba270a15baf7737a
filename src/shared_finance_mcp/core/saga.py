"""
Ordered multi-step actions with compensation.

A user action such as "deposit" issues several dependent backend calls.
Each step may declare a compensation; when a later step fails, the
compensations of the completed steps run in reverse order before the
failure is reported.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from shared_finance_mcp.core.exceptions import SagaFailedError

logger = logging.getLogger(__name__)

StepAction = Callable[[Dict[str, Any]], Awaitable[Any]]
StepCompensation = Callable[[Dict[str, Any], Any], Awaitable[None]]


@dataclass
class SagaStep:
    """
    One forward step of a saga.

    `action` receives the shared results dict (step name -> result) and its
    return value is stored under `name`. `compensate` receives the same
    dict and this step's own result.
    """

    name: str
    action: StepAction
    compensate: Optional[StepCompensation] = None


@dataclass
class Saga:
    """Runs steps sequentially, undoing completed steps on failure."""

    name: str
    steps: List[SagaStep] = field(default_factory=list)

    def step(
        self,
        name: str,
        action: StepAction,
        compensate: Optional[StepCompensation] = None,
    ) -> "Saga":
        self.steps.append(SagaStep(name, action, compensate))
        return self

    async def run(self) -> Dict[str, Any]:
        """
        Execute every step in order.

        Returns:
            Dict mapping step name to the step's result

        Raises:
            SagaFailedError: If a step raises; completed steps have been
                             compensated by then
        """
        results: Dict[str, Any] = {}
        completed: List[SagaStep] = []

        for step in self.steps:
            logger.debug("%s: running step %s", self.name, step.name)
            try:
                results[step.name] = await step.action(results)
            except Exception as e:
                logger.warning("%s: step %s failed: %s", self.name, step.name, e)
                compensated, errors = await self._compensate(completed, results)
                raise SagaFailedError(
                    step=step.name,
                    cause=e,
                    completed=[s.name for s in completed],
                    compensated=compensated,
                    compensation_errors=errors,
                ) from e
            completed.append(step)

        return results

    async def _compensate(
        self, completed: List[SagaStep], results: Dict[str, Any]
    ) -> Tuple[List[str], List[BaseException]]:
        compensated: List[str] = []
        errors: List[BaseException] = []

        for step in reversed(completed):
            if step.compensate is None:
                continue
            logger.warning("%s: compensating step %s", self.name, step.name)
            try:
                await step.compensate(results, results.get(step.name))
                compensated.append(step.name)
            except Exception as e:
                # Keep undoing the remaining steps; the original failure is what gets raised
                logger.error(
                    "%s: compensation for %s failed: %s", self.name, step.name, e
                )
                errors.append(e)

        return compensated, errors
