from __future__ import annotations

from taorelease.core.result import Err, Ok, Result
from taorelease.git.repository import MergeConflict
from taorelease.release.domain.model import ReleaseContext
from taorelease.release.errors import ReleaseError
from taorelease.release.flow.env import StepEnv


def resolve_merge_conflict(
    env: StepEnv, ctx: ReleaseContext, conflict: MergeConflict
) -> Result[None, ReleaseError]:
    """Let the operator finish a conflicting merge by hand, then push it.

    Nothing is pushed unless the operator confirms the merge is complete and
    the working tree is clean.
    """
    branch = conflict.base
    env.console.error(conflict.summary())
    env.console.warning(
        "Please resolve the conflicts and complete the merge manually "
        "(including making the merge commit)."
    )

    if not env.gate.interactive:
        env.console.info("merge conflicts cannot be resolved in non-interactive mode")
        return Err(
            ReleaseError(
                kind="merge_unresolved",
                message=f"Not able to bring {branch} up to date. Please fix it manually.",
            )
        )

    done = env.gate.confirm(
        "isMergeDone",
        f"Has the merge been completed manually? I need to push the branch to {ctx.origin}.",
        default=False,
    )
    if not done:
        return Err(
            ReleaseError(
                kind="merge_unresolved",
                message=f"Not able to bring {branch} up to date. Please fix it manually.",
            )
        )

    dirty = env.git.has_local_changes()
    if isinstance(dirty, Err):
        return Err(ReleaseError(kind="git_failed", message=f"An error occurred: {dirty.error.message}"))
    if dirty.value:
        return Err(
            ReleaseError(
                kind="dirty_worktree",
                message=f"Cannot push changes because local branch '{branch}' still has changes to commit.",
            )
        )

    pushed = env.git.push(branch)
    if isinstance(pushed, Err):
        return Err(ReleaseError(kind="git_failed", message=f"An error occurred: {pushed.error.message}"))

    env.console.done(f"{branch} pushed to {ctx.origin}")
    return Ok(None)
