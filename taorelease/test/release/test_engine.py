from __future__ import annotations

from taorelease.core.result import Err, Ok, Result
from taorelease.git.repository import MergeConflict
from taorelease.output.console import MockConsole
from taorelease.release.domain.model import ReleaseContext
from taorelease.release.errors import ReleaseError
from taorelease.release.flow.engine import Step, StepFailure, run_workflow


def _ctx() -> ReleaseContext:
    return ReleaseContext(
        base_branch="develop", release_branch="master", branch_prefix="release", origin="origin"
    )


class Recorder:
    def __init__(self) -> None:
        self.ran: list[str] = []
        self.conflicts: list[MergeConflict] = []

    def ok(self, name: str):
        def handler(env: Recorder, ctx: ReleaseContext) -> Result[None, StepFailure]:
            del ctx
            env.ran.append(name)
            return Ok(None)

        return handler

    def fail(self, name: str, error: StepFailure):
        def handler(env: Recorder, ctx: ReleaseContext) -> Result[None, StepFailure]:
            del ctx
            env.ran.append(name)
            return Err(error)

        return handler


def _no_conflict_handler(
    env: Recorder, ctx: ReleaseContext, conflict: MergeConflict
) -> Result[None, ReleaseError]:
    raise AssertionError("unexpected conflict")


def test_runs_steps_in_order() -> None:
    rec = Recorder()
    steps = [Step("a", rec.ok("a")), Step("b", rec.ok("b")), Step("c", rec.ok("c"))]

    result = run_workflow(
        steps=steps, env=rec, context=_ctx(), console=MockConsole(), on_conflict=_no_conflict_handler
    )

    assert isinstance(result, Ok)
    assert rec.ran == ["a", "b", "c"]
    assert result.value.completed == ["a", "b", "c"]


def test_fatal_failure_stops_and_names_step() -> None:
    rec = Recorder()
    steps = [
        Step("a", rec.ok("a")),
        Step(
            "does-tag-exist",
            rec.fail("does-tag-exist", ReleaseError("tag_exists", "The tag v1.3.0 already exists")),
        ),
        Step("c", rec.ok("c")),
    ]

    result = run_workflow(
        steps=steps, env=rec, context=_ctx(), console=MockConsole(), on_conflict=_no_conflict_handler
    )

    assert isinstance(result, Err)
    assert result.error.step == "does-tag-exist"
    assert result.error.kind == "tag_exists"
    assert rec.ran == ["a", "does-tag-exist"]


def test_soft_failure_is_reported_and_skipped() -> None:
    rec = Recorder()
    console = MockConsole()
    steps = [
        Step(
            "build",
            rec.fail("build", ReleaseError("build_failed", "Unable to build package.")),
            policy="soft",
        ),
        Step("c", rec.ok("c")),
    ]

    result = run_workflow(
        steps=steps, env=rec, context=_ctx(), console=console, on_conflict=_no_conflict_handler
    )

    assert isinstance(result, Ok)
    assert rec.ran == ["build", "c"]
    assert result.value.completed == ["c"]
    assert result.value.soft_failures[0].step == "build"
    assert console.messages == ["error: Unable to build package. Continue."]


def test_existing_step_name_is_kept() -> None:
    rec = Recorder()
    error = ReleaseError("git_failed", "push rejected", step="inner")

    result = run_workflow(
        steps=[Step("outer", rec.fail("outer", error))],
        env=rec,
        context=_ctx(),
        console=MockConsole(),
        on_conflict=_no_conflict_handler,
    )

    assert isinstance(result, Err)
    assert result.error.step == "inner"


def test_conflict_goes_to_handler() -> None:
    rec = Recorder()
    conflict = MergeConflict(base="develop", source="master", paths=("manifest.php",))

    def resolve(env: Recorder, ctx: ReleaseContext, c: MergeConflict) -> Result[None, ReleaseError]:
        del ctx
        env.conflicts.append(c)
        return Ok(None)

    result = run_workflow(
        steps=[Step("merge-back", rec.fail("merge-back", conflict)), Step("cleanup", rec.ok("cleanup"))],
        env=rec,
        context=_ctx(),
        console=MockConsole(),
        on_conflict=resolve,
    )

    assert isinstance(result, Ok)
    assert rec.conflicts == [conflict]
    assert result.value.completed == ["merge-back", "cleanup"]


def test_unresolved_conflict_is_fatal() -> None:
    rec = Recorder()
    conflict = MergeConflict(base="develop", source="master", paths=())

    def refuse(env: Recorder, ctx: ReleaseContext, c: MergeConflict) -> Result[None, ReleaseError]:
        del env, ctx, c
        return Err(ReleaseError("merge_unresolved", "Not able to bring develop up to date."))

    result = run_workflow(
        steps=[Step("merge-back", rec.fail("merge-back", conflict)), Step("cleanup", rec.ok("cleanup"))],
        env=rec,
        context=_ctx(),
        console=MockConsole(),
        on_conflict=refuse,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "merge_unresolved"
    assert result.error.step == "merge-back"
    assert rec.ran == ["merge-back"]
