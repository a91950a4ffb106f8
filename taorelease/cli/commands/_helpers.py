"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from taorelease.core.errors import ErrorCode
from taorelease.core.result import Err, Result
from taorelease.release.errors import ReleaseError, ReleaseErrorKind
from taorelease.release.view.render import render_error

if TYPE_CHECKING:
    from taorelease.cli.context import CLIContext


_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "version_resolution": ErrorCode.USER_ERROR,
    "invalid_target": ErrorCode.USER_ERROR,
    "target_not_found": ErrorCode.USER_ERROR,
    "invalid_input": ErrorCode.USER_ERROR,
    "config_invalid": ErrorCode.USER_ERROR,
    "tag_exists": ErrorCode.USER_ERROR,
    "branch_exists": ErrorCode.USER_ERROR,
    "invalid_instance": ErrorCode.ENV_ERROR,
    "dirty_worktree": ErrorCode.ENV_ERROR,
    "repo_name_missing": ErrorCode.ENV_ERROR,
    "gh_missing": ErrorCode.ENV_ERROR,
    "gh_auth_required": ErrorCode.ENV_ERROR,
    "merge_unresolved": ErrorCode.ENV_ERROR,
    "build_failed": ErrorCode.BUILD_ERROR,
    "publish_failed": ErrorCode.NETWORK_ERROR,
    "forge_failed": ErrorCode.NETWORK_ERROR,
    "notes_failed": ErrorCode.NETWORK_ERROR,
    "git_failed": ErrorCode.NETWORK_ERROR,
    "aborted": ErrorCode.ABORTED,
}


def error_code_for(error: ReleaseError) -> ErrorCode:
    return _EXIT_CODES.get(error.kind, ErrorCode.USER_ERROR)


def exit_on_error[T](result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the value of an Ok result; report an Err and exit non-zero."""
    if isinstance(result, Err):
        render_error(ctx.console, result.error)
        raise typer.Exit(code=int(error_code_for(result.error)))
    return result.value
