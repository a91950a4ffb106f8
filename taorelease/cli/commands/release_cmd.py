from __future__ import annotations

from pathlib import Path

import typer

from taorelease.cli.commands._helpers import exit_on_error
from taorelease.cli.context import CLIContext, build_context
from taorelease.cli.prompts import TyperPrompter
from taorelease.core.result import Err, Ok, Result
from taorelease.git.repository import Repository
from taorelease.output.console import Style
from taorelease.release.contracts import ForgeGateway, RepositoryGateway
from taorelease.release.domain.model import ReleaseOptions, TargetKind
from taorelease.release.errors import ReleaseError
from taorelease.release.flow.env import ForgeFactory
from taorelease.release.flow.release import run_release
from taorelease.release.infra.gh import ensure_gh_auth, ensure_gh_available
from taorelease.release.infra.github import GitHubForge
from taorelease.release.resolve.targets import provider_for
from taorelease.release.view.render import render_result

_INTERACTIVE = typer.Option(
    True, "--interactive/--no-interactive", help="Ask before each checkpoint"
)
_BASE_BRANCH = typer.Option(None, "--base-branch", help="Development branch [default: develop]")
_RELEASE_BRANCH = typer.Option(None, "--release-branch", help="Release branch [default: master]")
_BRANCH_PREFIX = typer.Option(None, "--branch-prefix", help="Releasing branch prefix [default: release]")
_ORIGIN = typer.Option(None, "--origin", help="Git remote [default: origin]")
_VERSION = typer.Option(None, "--version-to-release", help="Version to release instead of the recommended one")
_COMMENT = typer.Option(None, "--release-comment", help="Comment attached to the GitHub release")
_DEBUG = typer.Option(False, "--debug", help="Print resolved options")


def _make_options(
    ctx: CLIContext,
    *,
    kind: TargetKind,
    interactive: bool,
    base_branch: str | None,
    release_branch: str | None,
    branch_prefix: str | None,
    origin: str | None,
    version_to_release: str | None,
    release_comment: str | None,
    path_to_tao: Path | None = None,
    extension_to_release: str | None = None,
    path_to_package: Path | None = None,
    www_user: str | None = None,
    update_translations: bool | None = None,
) -> ReleaseOptions:
    defaults = ctx.config
    if path_to_tao is None and defaults.tao_root:
        path_to_tao = Path(defaults.tao_root)

    return ReleaseOptions(
        kind=kind,
        cwd=ctx.cwd,
        interactive=interactive,
        base_branch=base_branch or defaults.base_branch,
        release_branch=release_branch or defaults.release_branch,
        branch_prefix=branch_prefix or defaults.branch_prefix,
        origin=origin or defaults.origin,
        www_user=www_user or defaults.www_user,
        path_to_tao=path_to_tao,
        extension_to_release=extension_to_release,
        path_to_package=path_to_package,
        version_to_release=version_to_release,
        release_comment=release_comment,
        update_translations=update_translations,
        token=ctx.token(),
    )


def _print_options(ctx: CLIContext, options: ReleaseOptions) -> None:
    # repr of ReleaseOptions leaves the token out
    for name in (
        "kind",
        "interactive",
        "base_branch",
        "release_branch",
        "branch_prefix",
        "origin",
        "path_to_tao",
        "extension_to_release",
        "path_to_package",
        "version_to_release",
        "update_translations",
    ):
        ctx.console.print(f"{name} = {getattr(options, name)!r}", Style.DIM)
    ctx.console.print(f"token = {'<set>' if options.token else '<none>'}", Style.DIM)


def _github_forge(cwd: Path) -> ForgeFactory:
    def factory(repo_name: str, token: str | None) -> Result[ForgeGateway, ReleaseError]:
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available
        auth = ensure_gh_auth(cwd=cwd, token=token)
        if isinstance(auth, Err):
            return auth
        return Ok(GitHubForge(repo_name=repo_name, token=token, cwd=cwd))

    return factory


def _release(ctx: CLIContext, options: ReleaseOptions, *, debug: bool) -> None:
    if debug:
        _print_options(ctx, options)

    ctx.console.title(f"taorelease: {options.kind} release")

    def repo_factory(path: Path) -> RepositoryGateway:
        return Repository(path, origin=options.origin)

    result = run_release(
        options,
        provider=provider_for(options),
        prompter=TyperPrompter(ctx.console),
        console=ctx.console,
        repo_factory=repo_factory,
        forge_factory=_github_forge(ctx.cwd),
    )
    render_result(ctx.console, exit_on_error(result, ctx))


def extension(
    interactive: bool = _INTERACTIVE,
    base_branch: str | None = _BASE_BRANCH,
    release_branch: str | None = _RELEASE_BRANCH,
    branch_prefix: str | None = _BRANCH_PREFIX,
    origin: str | None = _ORIGIN,
    version_to_release: str | None = _VERSION,
    release_comment: str | None = _COMMENT,
    path_to_tao: Path | None = typer.Option(None, "--path-to-tao", help="Root of the TAO instance"),
    extension_to_release: str | None = typer.Option(
        None, "--extension-to-release", help="Name of the extension to release"
    ),
    www_user: str | None = typer.Option(None, "--www-user", help="Web server user [default: www-data]"),
    update_translations: bool | None = typer.Option(
        None,
        "--update-translations/--no-update-translations",
        help="Regenerate translations before the release",
    ),
    debug: bool = _DEBUG,
) -> None:
    """Release a TAO extension."""
    ctx = build_context()
    options = _make_options(
        ctx,
        kind="extension",
        interactive=interactive,
        base_branch=base_branch,
        release_branch=release_branch,
        branch_prefix=branch_prefix,
        origin=origin,
        version_to_release=version_to_release,
        release_comment=release_comment,
        path_to_tao=path_to_tao,
        extension_to_release=extension_to_release,
        www_user=www_user,
        update_translations=update_translations,
    )
    _release(ctx, options, debug=debug)


def package(
    interactive: bool = _INTERACTIVE,
    base_branch: str | None = _BASE_BRANCH,
    release_branch: str | None = _RELEASE_BRANCH,
    branch_prefix: str | None = _BRANCH_PREFIX,
    origin: str | None = _ORIGIN,
    version_to_release: str | None = _VERSION,
    release_comment: str | None = _COMMENT,
    path_to_package: Path | None = typer.Option(
        None, "--path-to-package", help="Directory holding package.json [default: cwd]"
    ),
    debug: bool = _DEBUG,
) -> None:
    """Release an npm package."""
    ctx = build_context()
    options = _make_options(
        ctx,
        kind="package",
        interactive=interactive,
        base_branch=base_branch,
        release_branch=release_branch,
        branch_prefix=branch_prefix,
        origin=origin,
        version_to_release=version_to_release,
        release_comment=release_comment,
        path_to_package=path_to_package,
    )
    _release(ctx, options, debug=debug)


def repository(
    interactive: bool = _INTERACTIVE,
    base_branch: str | None = _BASE_BRANCH,
    release_branch: str | None = _RELEASE_BRANCH,
    branch_prefix: str | None = _BRANCH_PREFIX,
    origin: str | None = _ORIGIN,
    version_to_release: str | None = _VERSION,
    release_comment: str | None = _COMMENT,
    debug: bool = _DEBUG,
) -> None:
    """Release the git repository in the current directory."""
    ctx = build_context()
    options = _make_options(
        ctx,
        kind="repository",
        interactive=interactive,
        base_branch=base_branch,
        release_branch=release_branch,
        branch_prefix=branch_prefix,
        origin=origin,
        version_to_release=version_to_release,
        release_comment=release_comment,
    )
    _release(ctx, options, debug=debug)
