"""Release steps.

Each step is a function ``(StepEnv, ReleaseContext) -> Result`` that reads
and fills the shared context. Whether a failure stops the run is decided by
the pipeline (see ``pipelines.py``), not here.
"""

from __future__ import annotations

from taorelease.core.result import Err, Ok, Result
from taorelease.git.repository import GitError
from taorelease.release.domain.commits import recommend_bump
from taorelease.release.domain.model import ExtensionTarget, PullRequest, ReleaseContext
from taorelease.release.domain.notes import release_body
from taorelease.release.errors import ReleaseError
from taorelease.release.flow.engine import StepFailure
from taorelease.release.flow.env import StepEnv
from taorelease.release.resolve.version import (
    VersionResolution,
    apply_version_override,
    compute_next_version,
)

StepResult = Result[None, StepFailure]

BUMP_COMMIT_MESSAGE = "chore: bump version"
BUILD_COMMIT_MESSAGE = "chore: bundle assets"
TRANSLATIONS_COMMIT_MESSAGE = "chore: update translations"


def _git_failed(error: GitError, message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="git_failed", message=f"{message}: {error.message}"))


def _aborted(message: str = "Release aborted") -> Err[ReleaseError]:
    return Err(ReleaseError(kind="aborted", message=message))


def _require[T](value: T | None, what: str) -> T:
    if value is None:
        raise RuntimeError(f"{what} is not set; check the pipeline order")
    return value


def _display_name(ctx: ReleaseContext) -> str:
    if ctx.metadata is not None:
        return ctx.metadata.name
    return _require(ctx.target, "target").name


# -- setup -------------------------------------------------------------------


def load_credentials(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    """Pick up the GitHub token; without one, gh's own login is used."""
    token = env.options.token
    if not token and env.gate.interactive:
        token = env.gate.ask_text(
            "token",
            "I need a Github token, with 'repo' rights (leave empty to use the gh login) :",
            secret=True,
        )
    ctx.auth_token = token or None
    if ctx.auth_token is None:
        env.console.info("no token provided, relying on the gh CLI login")
    return Ok(None)


def select_target(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    selected = env.provider.select_target(env.gate)
    if isinstance(selected, Err):
        return selected

    target = selected.value
    ctx.target = target
    env.repo = env.repo_factory(target.path)
    env.console.info(f"{target.name} selected ({target.path})")
    return Ok(None)


def init_forge(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")
    metadata = env.provider.get_metadata(target, env.git)
    if isinstance(metadata, Err):
        return metadata

    ctx.metadata = metadata.value
    if metadata.value.repo_name is None:
        return Err(
            ReleaseError(
                kind="repo_name_missing",
                message=f"Unable to find the github repository name of {target.name}",
                hint="check composer.json / package.json",
            )
        )
    ctx.repo_name = metadata.value.repo_name

    forge = env.forge_factory(ctx.repo_name, ctx.auth_token)
    if isinstance(forge, Err):
        return forge
    env.forge = forge.value
    return Ok(None)


def verify_local_changes(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")
    env.console.doing(f"Checking local changes in {target.path}")

    dirty = env.git.has_local_changes()
    if isinstance(dirty, Err):
        return _git_failed(dirty.error, "Unable to read the repository status")
    if dirty.value:
        return Err(
            ReleaseError(
                kind="dirty_worktree",
                message=f"The {env.provider.kind} {target.name} has local changes, "
                "please clean or stash them before releasing.",
            )
        )
    env.console.done(f"{target.name} is clean")
    return Ok(None)


def sign_tags(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    ctx.has_sign_key = env.git.has_sign_key()
    if not ctx.has_sign_key:
        env.console.warning(
            "No signing key configured (git config user.signingkey), tags will not be signed"
        )
    return Ok(None)


def verify_branches(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    if not env.gate.confirm(
        "pull",
        f"Can I checkout and pull {ctx.base_branch} and {ctx.release_branch}  ?",
    ):
        return _aborted()

    for branch in (ctx.release_branch, ctx.base_branch):
        env.console.doing(f"Updating {branch}")
        pulled = env.git.pull(branch)
        if isinstance(pulled, Err):
            return _git_failed(pulled.error, f"Unable to update {branch}")
    return Ok(None)


# -- version -----------------------------------------------------------------


def extract_version(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    """Compute the version to release from the last tag and the commit history."""
    env.console.doing("Getting the last version and the commits since")

    last_tag = env.git.get_last_tag()
    if isinstance(last_tag, Err):
        return _git_failed(last_tag.error, "Unable to read tags")

    messages = env.git.commit_messages(last_tag.value)
    if isinstance(messages, Err):
        return _git_failed(messages.error, "Unable to read the commit history")

    recommendation = recommend_bump(messages.value)
    resolution = compute_next_version(last_tag.value, recommendation)
    if isinstance(resolution, Err):
        return resolution

    env.console.info(f"Last version found: {resolution.value.last_version}")

    if env.options.version_to_release:
        resolution = apply_version_override(resolution.value, env.options.version_to_release)
        if isinstance(resolution, Err):
            return resolution
        env.console.info(f"Release version provided: {resolution.value.version}")
        return _assign(env, ctx, resolution.value)

    resolved = resolution.value
    stats = recommendation.stats
    env.console.info(f"Recommended version from commits: {resolved.version}")
    env.console.info(f"Reason: {recommendation.reason}")

    if stats.commits == 0:
        if not env.gate.confirm(
            "releaseAnyway",
            "There's no new commits, do you really want to release a new version?",
            default=False,
        ):
            return _aborted()
    elif stats.unset > 0:
        message = (
            "The commits are non conventional. A PATCH version will be applied for the release. "
            "Do you want to continue?"
            if recommendation.all_unset
            else "There are some non conventional commits. Are you sure you want to continue?"
        )
        if not env.gate.confirm("acceptDefaultVersion", message, default=False):
            return _aborted()

    return _assign(env, ctx, resolved)


def _assign(env: StepEnv, ctx: ReleaseContext, resolved: VersionResolution) -> StepResult:
    ctx.assign_version(resolved.version, resolved.last_version, resolved.recommendation)
    env.console.info(
        f"Release version will be {ctx.version} (tag {ctx.tag}, branch {ctx.releasing_branch})"
    )
    return Ok(None)


def is_release_required(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    diff = env.git.has_diff(ctx.base_branch, ctx.release_branch)
    if isinstance(diff, Err):
        return _git_failed(diff.error, "Unable to compare branches")

    if not diff.value and not env.gate.confirm(
        "diff",
        f"It seems there is no changes between {ctx.base_branch} and {ctx.release_branch}. "
        "Do you want to release anyway?",
        default=False,
    ):
        return _aborted()
    return Ok(None)


def does_tag_exist(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    tag = _require(ctx.tag, "tag")
    env.console.doing(f"Check if tag {tag} exists")

    exists = env.git.has_tag(tag)
    if isinstance(exists, Err):
        return _git_failed(exists.error, "Unable to list tags")
    if exists.value:
        return Err(
            ReleaseError(
                kind="tag_exists",
                message=f"The tag {tag} already exists",
                hint="bump the version or delete the tag",
            )
        )
    return Ok(None)


def does_releasing_branch_exist(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    branch = _require(ctx.releasing_branch, "releasing branch")
    env.console.doing(f"Check if branch remotes/{ctx.origin}/{branch} exists")

    for name in (f"remotes/{ctx.origin}/{branch}", branch):
        exists = env.git.has_branch(name)
        if isinstance(exists, Err):
            return _git_failed(exists.error, "Unable to list branches")
        if exists.value:
            return Err(
                ReleaseError(
                    kind="branch_exists",
                    message=f"The branch {name} already exists",
                )
            )
    return Ok(None)


def confirm_release(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    if not env.gate.confirm("go", f"Let's release version {_display_name(ctx)}@{ctx.version} 🚀 ?"):
        return _aborted()
    return Ok(None)


# -- releasing branch ----------------------------------------------------------


def create_releasing_branch(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    branch = _require(ctx.releasing_branch, "releasing branch")
    env.console.doing(f"Create release branch {branch}")

    created = env.git.local_branch(branch)
    if isinstance(created, Err):
        return _git_failed(created.error, f"Unable to create {branch}")
    pushed = env.git.push(branch)
    if isinstance(pushed, Err):
        return _git_failed(pushed.error, f"Unable to push {branch}")

    env.console.done(f"{branch} created")
    return Ok(None)


def update_version(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")
    version = _require(ctx.version, "version")
    branch = _require(ctx.releasing_branch, "releasing branch")
    env.console.doing(f"Update {target.name} version to {version}")

    updated = env.provider.update_version(target, version)
    if isinstance(updated, Err):
        return updated

    committed = env.git.commit_and_push(branch, BUMP_COMMIT_MESSAGE)
    if isinstance(committed, Err):
        return _git_failed(committed.error, "Unable to commit the version bump")
    if committed.value:
        env.console.info(f"Commit : [{BUMP_COMMIT_MESSAGE} - {len(committed.value)} file(s)]")
    return Ok(None)


def _commit_generated(env: StepEnv, branch: str, message: str) -> StepResult:
    committed = env.git.commit_and_push(branch, message)
    if isinstance(committed, Err):
        return _git_failed(committed.error, f"Unable to commit '{message}'")
    if committed.value:
        env.console.info(f"Commit : [{message} - {len(committed.value)} file(s)]")
        for path in committed.value:
            env.console.info(f"  - {path}")
    return Ok(None)


def build(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")
    env.console.doing(f"Building {target.name}")

    built = env.provider.build(target)
    if isinstance(built, Err):
        return Err(
            ReleaseError(
                kind="build_failed",
                message=f"Unable to build package. {built.error.message}",
                hint=built.error.hint,
            )
        )
    branch = _require(ctx.releasing_branch, "releasing branch")
    return _commit_generated(env, branch, BUILD_COMMIT_MESSAGE)


def update_translations(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")
    if not isinstance(target, ExtensionTarget):
        return Ok(None)

    wanted = env.options.update_translations
    if wanted is None:
        wanted = env.gate.interactive and env.gate.confirm(
            "updateTranslations", "Do you want to update the translations?", default=False
        )
    if not wanted:
        return Ok(None)

    env.console.doing(f"Updating translations of {target.name}")
    translated = env.provider.translate(target)
    if isinstance(translated, Err):
        return translated
    return _commit_generated(
        env, _require(ctx.releasing_branch, "releasing branch"), TRANSLATIONS_COMMIT_MESSAGE
    )


# -- GitHub --------------------------------------------------------------------


def create_pull_request(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    branch = _require(ctx.releasing_branch, "releasing branch")
    env.console.doing("Create the release pull request")

    created = env.github.create_release_pr(
        branch,
        ctx.release_branch,
        _require(ctx.version, "version"),
        _require(ctx.last_version, "last version"),
    )
    if isinstance(created, Err):
        return Err(
            ReleaseError(
                kind="forge_failed",
                message="Unable to create the release pull request",
                hint=created.error.hint or created.error.message,
            )
        )

    payload = created.value
    if payload.state != "open":
        return Err(
            ReleaseError(
                kind="forge_failed",
                message="Unable to create the release pull request",
                hint=f"pull request state is '{payload.state}'",
            )
        )

    ctx.pull_request = PullRequest(
        url=payload.html_url,
        api_url=payload.url,
        number=payload.number,
        id=payload.id,
    )
    env.console.info(f"{payload.html_url} created")
    env.console.done("ok")
    return Ok(None)


def extract_release_notes(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    pr = _require(ctx.pull_request, "pull request")
    pr.notes = ""
    env.console.doing("Extract release notes")

    notes = env.github.extract_release_notes(pr.number)
    if isinstance(notes, Err):
        return Err(
            ReleaseError(
                kind="notes_failed",
                message="Unable to create the release notes",
                hint=notes.error.hint,
            )
        )

    pr.notes = notes.value
    env.console.info(f"Release notes :\n{notes.value}")
    env.console.done("ok")
    return Ok(None)


def merge_pull_request(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    pr = _require(ctx.pull_request, "pull request")
    branch = _require(ctx.releasing_branch, "releasing branch")

    if not env.gate.confirm(
        "pr",
        f"Please verify the release pull request {pr.url} , can I merge it ?",
    ):
        return _aborted()

    env.console.doing(f"Merging {branch} into {ctx.release_branch}")
    merged = env.git.merge_pr(ctx.release_branch, branch)
    if isinstance(merged, Err):
        return _git_failed(merged.error, "Unable to merge the release pull request")
    env.console.done(f"PR #{pr.number} merged")
    return Ok(None)


def create_release_tag(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    tag = _require(ctx.tag, "tag")
    env.console.doing(f"Add and push tag {tag}")

    tagged = env.git.tag(ctx.release_branch, tag, f"version {ctx.version}", sign=ctx.has_sign_key)
    if isinstance(tagged, Err):
        return _git_failed(tagged.error, f"Unable to create the tag {tag}")
    env.console.done(f"tag {tag} pushed")
    return Ok(None)


def confirm_publish_release(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    if not env.gate.confirm("publishRelease", f"Publish the GitHub release {ctx.tag} ?"):
        return _aborted()
    return Ok(None)


def create_github_release(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    tag = _require(ctx.tag, "tag")
    comment = env.gate.ask_text(
        "comment", "Any comment on the release ?", override=env.options.release_comment
    )
    ctx.comment = comment

    env.console.doing(f"Creating github release {tag}")
    notes = ctx.pull_request.notes if ctx.pull_request is not None else ""
    released = env.github.release(tag, release_body(comment, notes))
    if isinstance(released, Err):
        return Err(
            ReleaseError(
                kind="forge_failed",
                message=f"Unable to create the release {tag}",
                hint=released.error.hint or released.error.message,
            )
        )
    env.console.done("ok")
    return Ok(None)


def merge_back(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    env.console.doing(f"Merging back {ctx.release_branch} into {ctx.base_branch}")

    merged = env.git.merge_back(ctx.base_branch, ctx.release_branch)
    if isinstance(merged, Err):
        if isinstance(merged.error, GitError):
            return Err(
                ReleaseError(kind="git_failed", message=f"An error occurred: {merged.error.message}")
            )
        return Err(merged.error)

    env.console.done(f"{ctx.release_branch} merged into {ctx.base_branch}")
    return Ok(None)


def publish(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    target = _require(ctx.target, "target")

    switched = env.git.checkout(ctx.release_branch)
    if isinstance(switched, Err):
        return _git_failed(switched.error, f"Unable to checkout {ctx.release_branch}")

    if not env.gate.confirm(
        "confirmPublish",
        "Do you want to proceed with the 'npm publish' command?",
        default=False,
    ):
        return _aborted("npm publish cancelled")

    env.console.doing(f"Publishing {target.name}@{ctx.version}")
    published = env.provider.publish(target)
    if isinstance(published, Err):
        return published
    env.console.done(f"{target.name}@{ctx.version} published")
    return Ok(None)


def remove_releasing_branch(env: StepEnv, ctx: ReleaseContext) -> StepResult:
    branch = _require(ctx.releasing_branch, "releasing branch")
    env.console.doing(f"Removing the branch {branch}")

    removed = env.git.delete_branch(branch)
    if isinstance(removed, Err):
        return _git_failed(removed.error, f"Unable to delete {branch}")
    env.console.done("ok")
    return Ok(None)
