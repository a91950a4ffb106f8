"""Target resolution: which unit is being released, and how to handle it.

Target kinds form a closed set. Each provider implements the same
capability set (select, metadata, version update, build, publish,
translations); capabilities that make no sense for a kind succeed without
doing anything.
"""

from __future__ import annotations

from pathlib import Path

from taorelease.core.result import Err, Ok, Result
from taorelease.release.contracts import Gate, RepositoryGateway, TargetProvider
from taorelease.release.domain.model import (
    ExtensionTarget,
    PackageTarget,
    ReleaseOptions,
    ReleaseTarget,
    RepositoryTarget,
    TargetKind,
    TargetMetadata,
)
from taorelease.release.errors import ReleaseError
from taorelease.release.infra import npm, tao


def _wrong_target(kind: TargetKind, target: ReleaseTarget) -> Err[ReleaseError]:
    return Err(
        ReleaseError(
            kind="invalid_target",
            message=f"{kind} provider cannot handle {type(target).__name__}",
        )
    )


class ExtensionProvider:
    """TAO extension inside a TAO instance."""

    kind: TargetKind = "extension"

    def __init__(self, options: ReleaseOptions) -> None:
        self._options = options

    def select_target(self, gate: Gate) -> Result[ReleaseTarget, ReleaseError]:
        root_input = (
            str(self._options.path_to_tao)
            if self._options.path_to_tao is not None
            else gate.ask_text("taoRoot", "Path to the TAO instance :", default=str(self._options.cwd))
        )
        root = Path(root_input).expanduser().resolve()

        if not tao.is_tao_instance(root):
            return Err(
                ReleaseError(
                    kind="invalid_instance",
                    message=f"{root} is not a TAO instance",
                    hint="expected tao/, generis/, index.php and config/",
                )
            )
        if not tao.is_installed(root):
            return Err(
                ReleaseError(
                    kind="invalid_instance",
                    message=f"It looks like the TAO instance at {root} is not installed",
                )
            )

        chosen = gate.choose(
            "extension",
            "Which extension you want to release ?",
            choices=tao.list_extensions(root),
            override=self._options.extension_to_release,
            option="--extension-to-release",
            scope=f"the TAO instance {root}",
        )
        if isinstance(chosen, Err):
            return chosen

        name = chosen.value
        return Ok(ExtensionTarget(name=name, path=root / name, tao_root=root))

    def get_metadata(
        self, target: ReleaseTarget, repo: RepositoryGateway
    ) -> Result[TargetMetadata, ReleaseError]:
        del repo
        if not isinstance(target, ExtensionTarget):
            return _wrong_target(self.kind, target)

        version = tao.read_manifest_version(target.path)
        if isinstance(version, Err):
            return version
        repo_name = tao.read_composer_name(target.path)
        if isinstance(repo_name, Err):
            return repo_name
        return Ok(TargetMetadata(name=target.name, version=version.value, repo_name=repo_name.value))

    def update_version(self, target: ReleaseTarget, version: str) -> Result[None, ReleaseError]:
        if not isinstance(target, ExtensionTarget):
            return _wrong_target(self.kind, target)
        return tao.write_manifest_version(target.path, version)

    def build(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        if not isinstance(target, ExtensionTarget):
            return _wrong_target(self.kind, target)
        return tao.build_assets(target.tao_root, target.name)

    def publish(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        del target
        return Ok(None)

    def translate(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        if not isinstance(target, ExtensionTarget):
            return _wrong_target(self.kind, target)
        return tao.update_translations(target.tao_root, target.name, self._options.www_user)


class PackageProvider:
    """npm package in the working directory (or ``--path-to-package``)."""

    kind: TargetKind = "package"

    def __init__(self, options: ReleaseOptions) -> None:
        self._options = options

    def select_target(self, gate: Gate) -> Result[ReleaseTarget, ReleaseError]:
        del gate
        path = (self._options.path_to_package or self._options.cwd).expanduser().resolve()
        info = npm.read_package(path)
        if isinstance(info, Err):
            return info
        return Ok(PackageTarget(name=info.value.name, path=path))

    def get_metadata(
        self, target: ReleaseTarget, repo: RepositoryGateway
    ) -> Result[TargetMetadata, ReleaseError]:
        del repo
        if not isinstance(target, PackageTarget):
            return _wrong_target(self.kind, target)

        info = npm.read_package(target.path)
        if isinstance(info, Err):
            return info
        return Ok(
            TargetMetadata(
                name=info.value.name,
                version=info.value.version,
                repo_name=npm.extract_repo_name(info.value.repository_url),
            )
        )

    def update_version(self, target: ReleaseTarget, version: str) -> Result[None, ReleaseError]:
        if not isinstance(target, PackageTarget):
            return _wrong_target(self.kind, target)
        return npm.write_package_version(target.path, version)

    def build(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        if not isinstance(target, PackageTarget):
            return _wrong_target(self.kind, target)
        installed = npm.npm(["ci"], cwd=target.path)
        if isinstance(installed, Err):
            return installed
        return npm.npm(["run", "build"], cwd=target.path)

    def publish(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        if not isinstance(target, PackageTarget):
            return _wrong_target(self.kind, target)
        return npm.npm(["publish"], cwd=target.path).map_err(
            lambda e: ReleaseError(kind="publish_failed", message=e.message, hint=e.hint)
        )

    def translate(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        del target
        return Ok(None)


class RepositoryProvider:
    """Plain git repository; only git and GitHub operations apply."""

    kind: TargetKind = "repository"

    def __init__(self, options: ReleaseOptions) -> None:
        self._options = options

    def select_target(self, gate: Gate) -> Result[ReleaseTarget, ReleaseError]:
        del gate
        path = self._options.cwd.expanduser().resolve()
        return Ok(RepositoryTarget(name=path.name, path=path))

    def get_metadata(
        self, target: ReleaseTarget, repo: RepositoryGateway
    ) -> Result[TargetMetadata, ReleaseError]:
        name = repo.get_repository_name().map_err(
            lambda e: ReleaseError(kind="repo_name_missing", message=e.message)
        )
        if isinstance(name, Err):
            return name
        if name.value is None:
            return Err(
                ReleaseError(
                    kind="repo_name_missing",
                    message=f"Unable to find the GitHub repository of {target.path}",
                    hint=f"check `git remote get-url {repo.origin}`",
                )
            )
        return Ok(TargetMetadata(name=name.value, version=None, repo_name=name.value))

    def update_version(self, target: ReleaseTarget, version: str) -> Result[None, ReleaseError]:
        del target, version
        return Ok(None)

    def build(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        del target
        return Ok(None)

    def publish(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        del target
        return Ok(None)

    def translate(self, target: ReleaseTarget) -> Result[None, ReleaseError]:
        del target
        return Ok(None)


def provider_for(options: ReleaseOptions) -> TargetProvider:
    match options.kind:
        case "extension":
            return ExtensionProvider(options)
        case "package":
            return PackageProvider(options)
        case "repository":
            return RepositoryProvider(options)
