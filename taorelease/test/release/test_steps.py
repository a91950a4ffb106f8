"""Step-level behaviour, driven against in-memory gateways."""

from __future__ import annotations

from pathlib import Path

import pytest

from taorelease.core.result import Err, Ok
from taorelease.git.repository import GitError, MergeConflict
from taorelease.release.domain.model import PullRequestPayload, RepositoryTarget
from taorelease.release.domain.semver import SemVer
from taorelease.release.errors import ReleaseError
from taorelease.release.flow import steps
from taorelease.release.flow.pipelines import build_pipeline
from taorelease.test.release._fakes import (
    FakeForge,
    FakeProvider,
    FakeRepository,
    Harness,
    make_harness,
)


def _ready(h: Harness) -> Harness:
    """Context as it stands once the version is known."""
    h.ctx.target = h.provider.target
    h.env.repo = h.repo
    h.env.forge = h.forge
    h.ctx.repo_name = "oat-sa/extension-tao-foo"
    h.ctx.assign_version(SemVer(1, 3, 0), SemVer(1, 2, 3))
    return h


class TestSetup:
    def test_token_from_options_is_not_prompted(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path, token="ghp_env")

        assert steps.load_credentials(h.env, h.ctx) == Ok(None)
        assert h.ctx.auth_token == "ghp_env"
        assert h.prompter.asked == []

    def test_token_prompt_is_secret(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path, answers={"token": "ghp_typed"})

        steps.load_credentials(h.env, h.ctx)

        assert h.ctx.auth_token == "ghp_typed"
        assert h.prompter.asked[0].secret is True
        assert "ghp_typed" not in h.console.text

    def test_no_token_falls_back_to_gh_login(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path, interactive=False)

        steps.load_credentials(h.env, h.ctx)

        assert h.ctx.auth_token is None
        assert h.console.find("relying on the gh CLI login")

    def test_select_target_creates_repository_gateway(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path)

        assert steps.select_target(h.env, h.ctx) == Ok(None)
        assert h.ctx.target == h.provider.target
        assert h.env.git is h.repo

    def test_init_forge_uses_repo_name_and_token(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path)
        h.ctx.target = h.provider.target
        h.env.repo = h.repo
        h.ctx.auth_token = "ghp_x"

        assert steps.init_forge(h.env, h.ctx) == Ok(None)
        assert h.forge_requests == [("oat-sa/extension-tao-foo", "ghp_x")]
        assert h.env.github is h.forge

    def test_init_forge_without_repo_name(self, tmp_path: Path) -> None:
        h = make_harness(tmp_path)
        h.provider.repo_name = None
        h.ctx.target = h.provider.target
        h.env.repo = h.repo

        result = steps.init_forge(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "repo_name_missing"
        assert h.forge_requests == []

    def test_dirty_worktree(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(dirty=True)))

        result = steps.verify_local_changes(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "dirty_worktree"
        assert result.error.message == (
            "The extension ext-foo has local changes, please clean or stash them before releasing."
        )

    def test_sign_tags(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(sign_key=True)))

        steps.sign_tags(h.env, h.ctx)

        assert h.ctx.has_sign_key is True

    def test_verify_branches_pulls_release_then_base(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))

        assert steps.verify_branches(h.env, h.ctx) == Ok(None)
        assert h.repo.called("pull") == [("pull", "master"), ("pull", "develop")]

    def test_verify_branches_declined(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, answers={"pull": False}))

        result = steps.verify_branches(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
        assert h.repo.called("pull") == []


class TestExtractVersion:
    def _harness(self, tmp_path: Path, repo: FakeRepository, **kwargs: object) -> Harness:
        h = make_harness(tmp_path, repo=repo, **kwargs)  # type: ignore[arg-type]
        h.ctx.target = h.provider.target
        h.env.repo = repo
        return h

    def test_feature_gives_minor(self, tmp_path: Path) -> None:
        h = self._harness(tmp_path, FakeRepository(last_tag="v1.2.3", messages=["feat: preview"]))

        assert steps.extract_version(h.env, h.ctx) == Ok(None)
        assert h.ctx.version == "1.3.0"
        assert h.ctx.tag == "v1.3.0"
        assert h.ctx.releasing_branch == "release-1.3.0"
        assert h.ctx.last_version == "1.2.3"
        assert h.console.find("info: Reason: There are 0 BREAKING CHANGES and 1 features")

    def test_no_commits_declined(self, tmp_path: Path) -> None:
        h = self._harness(tmp_path, FakeRepository(messages=[]), answers={"releaseAnyway": False})

        result = steps.extract_version(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
        assert h.ctx.version is None

    def test_unset_commits_ask_first(self, tmp_path: Path) -> None:
        h = self._harness(
            tmp_path, FakeRepository(messages=["Update README"]), answers={"acceptDefaultVersion": True}
        )

        assert steps.extract_version(h.env, h.ctx) == Ok(None)
        assert h.ctx.version == "1.2.4"
        question = h.prompter.asked[0]
        assert question.name == "acceptDefaultVersion"
        assert question.default is False
        assert "A PATCH version will be applied" in question.message

    def test_override(self, tmp_path: Path) -> None:
        h = self._harness(tmp_path, FakeRepository(), version_to_release="2.0.0")

        assert steps.extract_version(h.env, h.ctx) == Ok(None)
        assert h.ctx.version == "2.0.0"
        assert h.ctx.releasing_branch == "release-2.0.0"

    def test_override_lesser_than_last(self, tmp_path: Path) -> None:
        h = self._harness(tmp_path, FakeRepository(last_tag="v1.2.3"), version_to_release="1.2.0")

        result = steps.extract_version(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.message == "The provided version is lesser than the latest version 1.2.3."
        assert h.ctx.version is None

    def test_override_skips_commit_questions_without_commits(self, tmp_path: Path) -> None:
        h = self._harness(
            tmp_path,
            FakeRepository(messages=[]),
            answers={"releaseAnyway": False},
            version_to_release="2.0.0",
        )

        assert steps.extract_version(h.env, h.ctx) == Ok(None)
        assert h.ctx.version == "2.0.0"
        assert h.prompter.asked == []
        assert h.console.find("info: Release version provided: 2.0.0")

    def test_override_skips_non_conventional_question(self, tmp_path: Path) -> None:
        h = self._harness(
            tmp_path,
            FakeRepository(messages=["Update README"]),
            answers={"acceptDefaultVersion": False},
            version_to_release="1.3.0-rc.1",
        )

        assert steps.extract_version(h.env, h.ctx) == Ok(None)
        assert h.ctx.tag == "v1.3.0-rc.1"
        assert h.ctx.releasing_branch == "release-1.3.0-rc.1"
        assert h.prompter.asked == []
        assert not h.console.find("PATCH")

    def test_no_tag(self, tmp_path: Path) -> None:
        h = self._harness(tmp_path, FakeRepository(last_tag=None))

        result = steps.extract_version(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "version_resolution"


class TestPreflight:
    def test_no_diff_declined(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(diff=False), answers={"diff": False}))

        result = steps.is_release_required(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
        assert h.repo.called("has_diff") == [("has_diff", "develop", "master")]

    def test_no_diff_non_interactive_goes_on(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(diff=False), interactive=False))
        assert steps.is_release_required(h.env, h.ctx) == Ok(None)

    def test_tag_exists(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(tags=["v1.3.0"])))

        result = steps.does_tag_exist(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "tag_exists"
        assert result.error.message == "The tag v1.3.0 already exists"

    @pytest.mark.parametrize("existing", ["remotes/origin/release-1.3.0", "release-1.3.0"])
    def test_releasing_branch_exists(self, tmp_path: Path, existing: str) -> None:
        repo = FakeRepository(branches=["develop", "master", existing])
        h = _ready(make_harness(tmp_path, repo=repo))

        result = steps.does_releasing_branch_exist(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "branch_exists"
        assert existing in result.error.message

    def test_confirm_release_declined(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, answers={"go": False}))

        result = steps.confirm_release(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
        assert h.prompter.asked[0].message == "Let's release version ext-foo@1.3.0 🚀 ?"


class TestReleasingBranch:
    def test_create_and_push(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))

        assert steps.create_releasing_branch(h.env, h.ctx) == Ok(None)
        assert h.repo.calls[-2:] == [("local_branch", "release-1.3.0"), ("push", "release-1.3.0")]

    def test_update_version_commits_bump(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, repo=FakeRepository(changed_files=["manifest.php"])))

        assert steps.update_version(h.env, h.ctx) == Ok(None)
        assert h.provider.called("update_version") == [("update_version", "ext-foo", "1.3.0")]
        assert h.repo.called("commit_and_push") == [
            ("commit_and_push", "release-1.3.0", "chore: bump version")
        ]
        assert h.console.find("Commit : [chore: bump version - 1 file(s)]")

    def test_build_failure_message(self, tmp_path: Path) -> None:
        provider_error = ReleaseError("build_failed", "grunt taofoobundle failed")
        h = make_harness(tmp_path)
        h.provider.build_error = provider_error
        _ready(h)

        result = steps.build(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.message == "Unable to build package. grunt taofoobundle failed"
        assert h.repo.called("commit_and_push") == []

    def test_build_commits_generated_files(self, tmp_path: Path) -> None:
        repo = FakeRepository(changed_files=["views/js/loader/foo.min.js"])
        h = _ready(make_harness(tmp_path, repo=repo))

        assert steps.build(h.env, h.ctx) == Ok(None)
        assert repo.called("commit_and_push") == [
            ("commit_and_push", "release-1.3.0", "chore: bundle assets")
        ]
        assert h.console.find("  - views/js/loader/foo.min.js")


class TestTranslations:
    def test_flag_runs_translation(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, update_translations=True))

        assert steps.update_translations(h.env, h.ctx) == Ok(None)
        assert h.provider.called("translate") == [("translate", "ext-foo")]
        assert h.prompter.asked == []

    def test_interactive_question_defaults_to_no(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, answers={"updateTranslations": False}))

        assert steps.update_translations(h.env, h.ctx) == Ok(None)
        assert h.provider.called("translate") == []
        assert h.prompter.asked[0].default is False

    def test_non_interactive_without_flag_skips(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, interactive=False))

        assert steps.update_translations(h.env, h.ctx) == Ok(None)
        assert h.provider.called("translate") == []

    def test_not_an_extension(self, tmp_path: Path) -> None:
        target = RepositoryTarget(name="tao-deploy", path=tmp_path)
        provider = FakeProvider(target=target, kind="repository")
        h = _ready(
            make_harness(tmp_path, kind="repository", provider=provider, update_translations=True)
        )

        assert steps.update_translations(h.env, h.ctx) == Ok(None)
        assert provider.called("translate") == []


class TestGitHub:
    def test_pull_request_created(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))

        assert steps.create_pull_request(h.env, h.ctx) == Ok(None)
        assert h.forge.called("create_release_pr") == [
            ("create_release_pr", "release-1.3.0", "master", "1.3.0", "1.2.3")
        ]
        assert h.ctx.pull_request is not None
        assert h.ctx.pull_request.number == 42

    def test_pull_request_not_open(self, tmp_path: Path) -> None:
        closed = PullRequestPayload(state="closed", html_url="u", url="a", number=1, id=1)
        forge = FakeForge(payload=closed)
        h = _ready(make_harness(tmp_path, forge=forge))

        result = steps.create_pull_request(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "forge_failed"
        assert result.error.message == "Unable to create the release pull request"
        assert h.ctx.pull_request is None

    def test_notes_failure_leaves_empty_notes(self, tmp_path: Path) -> None:
        forge = FakeForge(notes=Err(ReleaseError("forge_failed", "gh api failed")))
        h = _ready(make_harness(tmp_path, forge=forge))
        steps.create_pull_request(h.env, h.ctx)

        result = steps.extract_release_notes(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "notes_failed"
        assert h.ctx.pull_request is not None
        assert h.ctx.pull_request.notes == ""

    def test_merge_pull_request(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))
        steps.create_pull_request(h.env, h.ctx)

        assert steps.merge_pull_request(h.env, h.ctx) == Ok(None)
        assert h.repo.called("merge_pr") == [("merge_pr", "master", "release-1.3.0")]

    def test_tag_is_signed_when_key_configured(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))
        h.ctx.has_sign_key = True

        assert steps.create_release_tag(h.env, h.ctx) == Ok(None)
        assert h.repo.called("tag") == [("tag", "master", "v1.3.0", "version 1.3.0", "signed")]

    def test_github_release_body(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, release_comment="Hotfix"))
        steps.create_pull_request(h.env, h.ctx)
        steps.extract_release_notes(h.env, h.ctx)

        assert steps.create_github_release(h.env, h.ctx) == Ok(None)
        assert h.forge.called("release") == [
            ("release", "v1.3.0", "Hotfix\n\n**Release notes :**\n- [feature] item preview\n")
        ]
        assert h.prompter.asked == []

    def test_github_release_comment_defaults_to_empty(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, interactive=False))

        steps.create_github_release(h.env, h.ctx)

        assert h.forge.called("release") == [("release", "v1.3.0", "\n\n**Release notes :**\n")]

    def test_merge_back_git_error_is_fatal(self, tmp_path: Path) -> None:
        repo = FakeRepository(failures={"merge_back": GitError("pull", "could not read from remote")})
        h = _ready(make_harness(tmp_path, repo=repo))

        result = steps.merge_back(h.env, h.ctx)

        assert isinstance(result, Err)
        assert isinstance(result.error, ReleaseError)
        assert result.error.kind == "git_failed"
        assert result.error.message == "An error occurred: could not read from remote"

    def test_merge_back_conflict_is_passed_on(self, tmp_path: Path) -> None:
        repo = FakeRepository(conflict_paths=("manifest.php",))
        h = _ready(make_harness(tmp_path, repo=repo))

        result = steps.merge_back(h.env, h.ctx)

        assert isinstance(result, Err)
        assert isinstance(result.error, MergeConflict)
        assert result.error.base == "develop"


class TestPublishAndCleanup:
    def test_publish_declined(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, kind="package", answers={"confirmPublish": False}))

        result = steps.publish(h.env, h.ctx)

        assert isinstance(result, Err)
        assert result.error.kind == "aborted"
        assert result.error.message == "npm publish cancelled"
        assert h.repo.called("checkout") == [("checkout", "master")]
        assert h.provider.called("publish") == []

    def test_publish(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path, kind="package", answers={"confirmPublish": True}))

        assert steps.publish(h.env, h.ctx) == Ok(None)
        assert h.provider.called("publish") == [("publish", "ext-foo")]

    def test_remove_releasing_branch(self, tmp_path: Path) -> None:
        h = _ready(make_harness(tmp_path))

        assert steps.remove_releasing_branch(h.env, h.ctx) == Ok(None)
        assert h.repo.called("delete_branch") == [("delete_branch", "release-1.3.0")]


class TestPipelines:
    def test_extension(self) -> None:
        names = [s.name for s in build_pipeline("extension")]

        assert names[:3] == ["load-credentials", "select-target", "init-forge"]
        assert names.index("update-version") < names.index("build") < names.index("update-translations")
        assert names.index("update-translations") < names.index("create-pull-request")
        assert names[-2:] == ["merge-back", "remove-releasing-branch"]

    def test_package_publishes_after_merge_back(self) -> None:
        names = [s.name for s in build_pipeline("package")]

        assert "update-translations" not in names
        assert names[-3:] == ["merge-back", "publish", "remove-releasing-branch"]

    def test_repository_has_no_target_steps(self) -> None:
        names = [s.name for s in build_pipeline("repository")]

        for skipped in ("update-version", "build", "update-translations", "publish"):
            assert skipped not in names
        assert names[-1] == "remove-releasing-branch"

    def test_soft_steps(self) -> None:
        soft = {s.name for s in build_pipeline("extension") if s.policy == "soft"}
        assert soft == {"build", "update-translations", "extract-release-notes"}
