"""Ordered multi-step orchestration without a transaction manager.

A saga is a list of steps run strictly one after another. Each step is a
single record store interaction (or a short read-then-write) that commits
on its own. Steps come in two kinds:

* critical steps: a ``PersistenceError`` stops the saga and propagates;
* best-effort steps: a ``PersistenceError`` is logged, recorded as a
  warning on the outcome, and the saga carries on.

Nothing is compensated. Steps are written to be idempotent so that a
caller may rerun the whole saga after a failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from estate_ledger.exceptions import PersistenceError
from estate_ledger.logging import bind

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class SagaStep:
    """One step: a name, a callable, and whether failure is fatal."""

    name: str
    action: Callable[[], Any]
    critical: bool = True
    # Returns a reason to skip, or None to run the step
    skip_when: Callable[[], str | None] | None = None


@dataclass
class StepOutcome:
    name: str
    status: StepStatus
    detail: str = ""


@dataclass
class SagaOutcome:
    """What happened to every step of one run."""

    saga: str
    steps: list[StepOutcome] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)

    @property
    def warnings(self) -> list[str]:
        return [
            f"{step.name}: {step.detail}"
            for step in self.steps
            if step.status is not StepStatus.COMPLETED and step.detail
        ]

    def status_of(self, name: str) -> StepStatus | None:
        for step in self.steps:
            if step.name == name:
                return step.status
        return None


class Saga:
    """Run a fixed list of steps in order.

    Parameters
    ----------
    name : str
        Saga name used in logs (``sell``, ``reopen``, ``apply_payment``).
    steps : list[SagaStep]
        Steps in execution order.
    **context : Any
        Extra log context, typically the unit being changed.
    """

    def __init__(self, name: str, steps: list[SagaStep], **context: Any) -> None:
        self.name = name
        self.steps = steps
        self.log = bind(logger, saga=name, **context)

    def run(self) -> SagaOutcome:
        """Execute every step.

        Returns
        -------
        SagaOutcome
            Per-step statuses, step return values keyed by step name, and
            warnings from best-effort steps.

        Raises
        ------
        PersistenceError
            If a critical step fails. Steps after it do not run.
        """
        outcome = SagaOutcome(saga=self.name)

        for step in self.steps:
            reason = step.skip_when() if step.skip_when else None
            if reason:
                self.log.info("Skipping step %s: %s", step.name, reason)
                outcome.steps.append(StepOutcome(step.name, StepStatus.SKIPPED, reason))
                continue

            self.log.debug("Running step %s", step.name)
            try:
                outcome.results[step.name] = step.action()
            except PersistenceError as exc:
                outcome.steps.append(StepOutcome(step.name, StepStatus.FAILED, str(exc)))
                if step.critical:
                    self.log.error("Critical step %s failed: %s", step.name, exc)
                    raise
                self.log.warning("Best-effort step %s failed, continuing: %s", step.name, exc)
                continue

            outcome.steps.append(StepOutcome(step.name, StepStatus.COMPLETED))

        self.log.info(
            "Saga finished: %d steps, %d warnings",
            len(outcome.steps),
            len(outcome.warnings),
        )
        return outcome
