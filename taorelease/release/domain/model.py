from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from taorelease.release.domain.commits import BumpRecommendation
from taorelease.release.domain.semver import SemVer

TargetKind = Literal["extension", "package", "repository"]


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Resolved run options (CLI flags merged with config defaults)."""

    kind: TargetKind
    cwd: Path
    interactive: bool = True
    base_branch: str = "develop"
    release_branch: str = "master"
    branch_prefix: str = "release"
    origin: str = "origin"
    www_user: str = "www-data"
    path_to_tao: Path | None = None
    extension_to_release: str | None = None
    path_to_package: Path | None = None
    version_to_release: str | None = None
    release_comment: str | None = None
    update_translations: bool | None = None
    token: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class ExtensionTarget:
    """A TAO extension; ``path`` is the extension directory inside ``tao_root``."""

    name: str
    path: Path
    tao_root: Path


@dataclass(frozen=True, slots=True)
class PackageTarget:
    """An npm package; ``path`` holds its package.json."""

    name: str
    path: Path


@dataclass(frozen=True, slots=True)
class RepositoryTarget:
    name: str
    path: Path


ReleaseTarget = ExtensionTarget | PackageTarget | RepositoryTarget


@dataclass(frozen=True, slots=True)
class TargetMetadata:
    name: str
    version: str | None
    repo_name: str | None


@dataclass(frozen=True, slots=True)
class PullRequestPayload:
    """Fields of a freshly created pull request, as returned by the forge."""

    state: str
    html_url: str
    url: str
    number: int
    id: int


@dataclass(slots=True)
class PullRequest:
    url: str
    api_url: str
    number: int
    id: int
    notes: str | None = None


@dataclass(slots=True)
class ReleaseContext:
    """Shared state of one release run.

    Steps read and write this record in order. ``version`` and everything
    derived from it are assigned once, through ``assign_version``.
    """

    base_branch: str
    release_branch: str
    branch_prefix: str
    origin: str
    target: ReleaseTarget | None = None
    metadata: TargetMetadata | None = None
    repo_name: str | None = None
    has_sign_key: bool = False
    last_version: str | None = None
    last_tag: str | None = None
    version: str | None = None
    tag: str | None = None
    releasing_branch: str | None = None
    recommendation: BumpRecommendation | None = None
    pull_request: PullRequest | None = None
    comment: str | None = None
    auth_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_options(cls, options: ReleaseOptions) -> ReleaseContext:
        return cls(
            base_branch=options.base_branch,
            release_branch=options.release_branch,
            branch_prefix=options.branch_prefix,
            origin=options.origin,
            comment=options.release_comment,
        )

    @property
    def tao_root_or_repo_path(self) -> Path | None:
        match self.target:
            case ExtensionTarget(tao_root=root):
                return root
            case PackageTarget(path=path) | RepositoryTarget(path=path):
                return path
            case None:
                return None

    def assign_version(
        self,
        version: SemVer,
        last_version: SemVer,
        recommendation: BumpRecommendation | None = None,
    ) -> None:
        """Record the version to release and derive tag and releasing branch.

        Raises:
            RuntimeError: if a version was already assigned in this run.
        """
        if self.version is not None:
            raise RuntimeError(f"release version already set to {self.version}")
        self.last_version = str(last_version)
        self.last_tag = last_version.to_tag()
        self.version = str(version)
        self.tag = version.to_tag()
        self.releasing_branch = f"{self.branch_prefix}-{version}"
        self.recommendation = recommendation
