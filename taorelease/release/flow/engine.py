from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal, TypeVar

from taorelease.core.result import Err, Ok, Result
from taorelease.git.repository import MergeConflict
from taorelease.output.console import ConsoleProtocol
from taorelease.release.domain.model import ReleaseContext
from taorelease.release.errors import ReleaseError

E = TypeVar("E")

StepPolicy = Literal["fatal", "soft"]
StepFailure = ReleaseError | MergeConflict
StepHandler = Callable[[E, ReleaseContext], Result[None, StepFailure]]
ConflictHandler = Callable[[E, ReleaseContext, MergeConflict], Result[None, ReleaseError]]


@dataclass(frozen=True, slots=True)
class Step[E]:
    """One entry of a release pipeline.

    A ``fatal`` step stops the run on failure; a ``soft`` one is reported
    and skipped.
    """

    name: str
    handler: StepHandler[E]
    policy: StepPolicy = "fatal"


def _str_list() -> list[str]:
    return []


def _error_list() -> list[ReleaseError]:
    return []


@dataclass(slots=True)
class WorkflowReport:
    completed: list[str] = field(default_factory=_str_list)
    soft_failures: list[ReleaseError] = field(default_factory=_error_list)


def run_workflow[E](
    *,
    steps: Sequence[Step[E]],
    env: E,
    context: ReleaseContext,
    console: ConsoleProtocol,
    on_conflict: ConflictHandler[E],
) -> Result[WorkflowReport, ReleaseError]:
    """Run ``steps`` in order against a shared ``context``.

    A ``MergeConflict`` returned by any step goes to ``on_conflict``; the step
    counts as completed if the conflict gets resolved.
    """
    report = WorkflowReport()

    for step in steps:
        outcome = step.handler(env, context)
        if isinstance(outcome, Err) and isinstance(outcome.error, MergeConflict):
            outcome = on_conflict(env, context, outcome.error)

        if isinstance(outcome, Ok):
            report.completed.append(step.name)
            continue

        error = outcome.error
        assert isinstance(error, ReleaseError)
        error = error.at_step(step.name)

        if step.policy == "soft":
            console.error(f"{error.message.rstrip('.')}. Continue.")
            report.soft_failures.append(error)
            continue

        return Err(error)

    return Ok(report)
