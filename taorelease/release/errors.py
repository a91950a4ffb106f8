"""Error types for the release bounded context."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

ReleaseErrorKind = Literal[
    "version_resolution",
    "invalid_target",
    "target_not_found",
    "invalid_instance",
    "dirty_worktree",
    "tag_exists",
    "branch_exists",
    "aborted",
    "forge_failed",
    "repo_name_missing",
    "git_failed",
    "merge_unresolved",
    "build_failed",
    "notes_failed",
    "publish_failed",
    "invalid_input",
    "gh_missing",
    "gh_auth_required",
    "config_invalid",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    This format is stable across resolve/flow/infra layers and can be rendered
    by view adapters without importing implementation details. ``step`` is
    filled in by the workflow engine with the name of the step that failed.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    step: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    def at_step(self, step: str) -> ReleaseError:
        if self.step is not None:
            return self
        return replace(self, step=step)
