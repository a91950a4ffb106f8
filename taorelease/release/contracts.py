"""Cross-layer contracts for the release bounded context.

Steps only talk to the outside world through these protocols, so tests can
drive a whole release with in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from taorelease.core.result import Result
from taorelease.git.repository import GitError, MergeConflict
from taorelease.release.domain.model import (
    PullRequestPayload,
    ReleaseTarget,
    TargetKind,
    TargetMetadata,
)
from taorelease.release.errors import ReleaseError

QuestionType = Literal["confirm", "input", "list"]


@dataclass(frozen=True, slots=True)
class Question:
    """A single operator prompt."""

    type: QuestionType
    name: str
    message: str
    default: object = None
    choices: tuple[str, ...] = ()
    secret: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseResult:
    """Run outcome rendered by view adapters."""

    success: bool
    summary: str
    hint: str | None = None
    details: tuple[str, ...] = ()
    warnings: int = 0


class Prompter(Protocol):
    def ask(self, question: Question) -> object: ...


class Gate(Protocol):
    """Operator checkpoint, as seen by resolvers and steps."""

    @property
    def interactive(self) -> bool: ...

    def confirm(self, name: str, message: str, *, default: bool = True) -> bool: ...

    def ask_text(
        self,
        name: str,
        message: str,
        *,
        default: str = "",
        override: str | None = None,
        secret: bool = False,
    ) -> str: ...

    def choose(
        self,
        name: str,
        message: str,
        *,
        choices: Sequence[str],
        override: str | None,
        option: str,
        scope: str,
    ) -> Result[str, ReleaseError]: ...


class RepositoryGateway(Protocol):
    origin: str

    def fetch(self) -> Result[None, GitError]: ...

    def pull(self, branch: str) -> Result[None, GitError]: ...

    def checkout(self, branch: str) -> Result[None, GitError]: ...

    def checkout_non_local(self, branch: str) -> Result[None, GitError]: ...

    def local_branch(self, name: str) -> Result[None, GitError]: ...

    def delete_branch(self, name: str) -> Result[None, GitError]: ...

    def has_branch(self, name: str) -> Result[bool, GitError]: ...

    def has_tag(self, name: str) -> Result[bool, GitError]: ...

    def has_diff(self, a: str, b: str) -> Result[bool, GitError]: ...

    def has_local_changes(self) -> Result[bool, GitError]: ...

    def has_sign_key(self) -> bool: ...

    def tag(
        self, branch: str, tag_name: str, message: str, *, sign: bool = False
    ) -> Result[None, GitError]: ...

    def merge_pr(self, base: str, feature: str) -> Result[None, GitError]: ...

    def merge_back(self, base: str, release: str) -> Result[None, MergeConflict | GitError]: ...

    def push(self, branch: str) -> Result[None, GitError]: ...

    def commit_and_push(self, branch: str, message: str) -> Result[list[str], GitError]: ...

    def get_last_tag(self) -> Result[str | None, GitError]: ...

    def get_local_branches(self) -> Result[list[str], GitError]: ...

    def get_repository_name(self) -> Result[str | None, GitError]: ...

    def commit_messages(self, since: str | None) -> Result[list[str], GitError]: ...


class ForgeGateway(Protocol):
    def create_release_pr(
        self, head: str, base: str, version: str, last_version: str
    ) -> Result[PullRequestPayload, ReleaseError]: ...

    def release(self, tag: str, body: str) -> Result[None, ReleaseError]: ...

    def extract_release_notes(self, pr_number: int) -> Result[str, ReleaseError]: ...


class TargetProvider(Protocol):
    """One kind of releasable unit (extension, package or repository)."""

    kind: TargetKind

    def select_target(self, gate: Gate) -> Result[ReleaseTarget, ReleaseError]: ...

    def get_metadata(
        self, target: ReleaseTarget, repo: RepositoryGateway
    ) -> Result[TargetMetadata, ReleaseError]: ...

    def update_version(self, target: ReleaseTarget, version: str) -> Result[None, ReleaseError]: ...

    def build(self, target: ReleaseTarget) -> Result[None, ReleaseError]: ...

    def publish(self, target: ReleaseTarget) -> Result[None, ReleaseError]: ...

    def translate(self, target: ReleaseTarget) -> Result[None, ReleaseError]: ...
