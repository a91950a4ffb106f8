from __future__ import annotations

from taorelease.release.domain.model import TargetKind
from taorelease.release.flow import steps
from taorelease.release.flow.engine import Step
from taorelease.release.flow.env import StepEnv

ReleaseStep = Step[StepEnv]

_PREPARE: tuple[ReleaseStep, ...] = (
    Step("load-credentials", steps.load_credentials),
    Step("select-target", steps.select_target),
    Step("init-forge", steps.init_forge),
    Step("verify-local-changes", steps.verify_local_changes),
    Step("sign-tags", steps.sign_tags),
    Step("verify-branches", steps.verify_branches),
    Step("extract-version", steps.extract_version),
    Step("is-release-required", steps.is_release_required),
    Step("does-tag-exist", steps.does_tag_exist),
    Step("does-releasing-branch-exist", steps.does_releasing_branch_exist),
    Step("confirm-release", steps.confirm_release),
    Step("create-releasing-branch", steps.create_releasing_branch),
)

_PUBLISH: tuple[ReleaseStep, ...] = (
    Step("create-pull-request", steps.create_pull_request),
    Step("extract-release-notes", steps.extract_release_notes, policy="soft"),
    Step("merge-pull-request", steps.merge_pull_request),
    Step("create-release-tag", steps.create_release_tag),
    Step("confirm-publish-release", steps.confirm_publish_release),
    Step("create-github-release", steps.create_github_release),
    Step("merge-back", steps.merge_back),
)

_UPDATE_VERSION = Step("update-version", steps.update_version)
_BUILD = Step("build", steps.build, policy="soft")
_TRANSLATIONS = Step("update-translations", steps.update_translations, policy="soft")
_NPM_PUBLISH = Step("publish", steps.publish)
_CLEANUP = Step("remove-releasing-branch", steps.remove_releasing_branch)


def build_pipeline(kind: TargetKind) -> list[ReleaseStep]:
    """Ordered steps for a release of ``kind``."""
    match kind:
        case "extension":
            return [*_PREPARE, _UPDATE_VERSION, _BUILD, _TRANSLATIONS, *_PUBLISH, _CLEANUP]
        case "package":
            return [*_PREPARE, _UPDATE_VERSION, _BUILD, *_PUBLISH, _NPM_PUBLISH, _CLEANUP]
        case "repository":
            return [*_PREPARE, *_PUBLISH, _CLEANUP]
