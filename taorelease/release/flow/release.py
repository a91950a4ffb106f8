from __future__ import annotations

from taorelease.core.result import Err, Ok, Result
from taorelease.output.console import ConsoleProtocol
from taorelease.release.contracts import Prompter, ReleaseResult, TargetProvider
from taorelease.release.domain.model import ReleaseContext, ReleaseOptions
from taorelease.release.errors import ReleaseError
from taorelease.release.flow.conflicts import resolve_merge_conflict
from taorelease.release.flow.engine import run_workflow
from taorelease.release.flow.env import ForgeFactory, RepoFactory, StepEnv
from taorelease.release.flow.gate import ConfirmationGate
from taorelease.release.flow.pipelines import build_pipeline


def run_release(
    options: ReleaseOptions,
    *,
    provider: TargetProvider,
    prompter: Prompter,
    console: ConsoleProtocol,
    repo_factory: RepoFactory,
    forge_factory: ForgeFactory,
    context: ReleaseContext | None = None,
) -> Result[ReleaseResult, ReleaseError]:
    """Run the full release pipeline for ``options.kind``."""
    ctx = context if context is not None else ReleaseContext.from_options(options)
    env = StepEnv(
        options=options,
        provider=provider,
        gate=ConfirmationGate(prompter, console, interactive=options.interactive),
        console=console,
        repo_factory=repo_factory,
        forge_factory=forge_factory,
    )

    outcome = run_workflow(
        steps=build_pipeline(options.kind),
        env=env,
        context=ctx,
        console=console,
        on_conflict=resolve_merge_conflict,
    )
    if isinstance(outcome, Err):
        return outcome

    name = ctx.metadata.name if ctx.metadata is not None else options.kind
    details: list[str] = []
    if ctx.pull_request is not None:
        details.append(f"pull request: {ctx.pull_request.url}")
    details.append(f"tag: {ctx.tag}")
    details.extend(f"skipped: {e.step} ({e.message})" for e in outcome.value.soft_failures)

    return Ok(
        ReleaseResult(
            success=True,
            summary=f"{name} v{ctx.version} released",
            details=tuple(details),
            warnings=len(outcome.value.soft_failures),
        )
    )
