from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from taorelease.core.result import Result
from taorelease.output.console import ConsoleProtocol
from taorelease.release.contracts import ForgeGateway, Gate, RepositoryGateway, TargetProvider
from taorelease.release.domain.model import ReleaseOptions
from taorelease.release.errors import ReleaseError

RepoFactory = Callable[[Path], RepositoryGateway]
ForgeFactory = Callable[[str, str | None], Result[ForgeGateway, ReleaseError]]


@dataclass(slots=True)
class StepEnv:
    """Collaborators available to release steps.

    The repository gateway only exists once the target is known, and the
    forge once the repository name is; steps that need them run later in
    the pipeline.
    """

    options: ReleaseOptions
    provider: TargetProvider
    gate: Gate
    console: ConsoleProtocol
    repo_factory: RepoFactory
    forge_factory: ForgeFactory
    repo: RepositoryGateway | None = None
    forge: ForgeGateway | None = None

    @property
    def git(self) -> RepositoryGateway:
        if self.repo is None:
            raise RuntimeError("repository gateway used before target selection")
        return self.repo

    @property
    def github(self) -> ForgeGateway:
        if self.forge is None:
            raise RuntimeError("forge gateway used before initialisation")
        return self.forge
