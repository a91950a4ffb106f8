"""GitHub forge adapter: release pull requests, releases and release notes."""

from __future__ import annotations

from pathlib import Path

from taorelease.core.result import Err, Ok, Result
from taorelease.core.structured import as_obj_list, as_str_dict, get_int, get_str, get_table
from taorelease.release.domain.model import PullRequestPayload
from taorelease.release.domain.notes import PrCommit, release_notes_from_commits
from taorelease.release.errors import ReleaseError
from taorelease.release.infra.gh import gh_api_json, gh_api_post


def release_pr_body(version: str, last_version: str) -> str:
    return (
        "Please check :\n"
        f" - [ ] the manifest (versions {version} and dependencies)\n"
        f" - [ ] the update script (from {last_version} to {version})\n"
        " - [ ] CSS and JavaScript bundles\n"
        " - [ ] Extension specials (version in tao-core, nested dependencies, etc.)\n"
    )


class GitHubForge:
    """ForgeGateway backed by ``gh api``."""

    def __init__(self, *, repo_name: str, token: str | None, cwd: Path) -> None:
        self.repo_name = repo_name
        self._token = token
        self._cwd = cwd

    def create_release_pr(
        self, head: str, base: str, version: str, last_version: str
    ) -> Result[PullRequestPayload, ReleaseError]:
        endpoint = f"repos/{self.repo_name}/pulls"
        obj = gh_api_post(
            cwd=self._cwd,
            endpoint=endpoint,
            fields={
                "title": f"Release {version}",
                "body": release_pr_body(version, last_version),
                "head": head,
                "base": base,
            },
            token=self._token,
        )
        if isinstance(obj, Err):
            return obj

        data = as_str_dict(obj.value)
        if data is None:
            return Err(ReleaseError(kind="forge_failed", message="unexpected pull request payload"))

        state = get_str(data, "state")
        html_url = get_str(data, "html_url")
        url = get_str(data, "url")
        number = get_int(data, "number")
        pr_id = get_int(data, "id")
        if state is None or html_url is None or url is None or number is None or pr_id is None:
            return Err(
                ReleaseError(
                    kind="forge_failed",
                    message="incomplete pull request payload",
                    hint=endpoint,
                )
            )
        return Ok(PullRequestPayload(state=state, html_url=html_url, url=url, number=number, id=pr_id))

    def release(self, tag: str, body: str) -> Result[None, ReleaseError]:
        obj = gh_api_post(
            cwd=self._cwd,
            endpoint=f"repos/{self.repo_name}/releases",
            fields={"tag_name": tag, "name": tag, "body": body},
            token=self._token,
        )
        if isinstance(obj, Err):
            return obj
        return Ok(None)

    def pr_commits(self, pr_number: int) -> Result[list[PrCommit], ReleaseError]:
        obj = gh_api_json(
            cwd=self._cwd,
            endpoint=f"repos/{self.repo_name}/pulls/{pr_number}/commits?per_page=100",
            token=self._token,
        )
        if isinstance(obj, Err):
            return obj

        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(
                ReleaseError(kind="notes_failed", message=f"unexpected commits payload: #{pr_number}")
            )

        out: list[PrCommit] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            sha = get_str(d, "sha")
            commit_tbl = get_table(d, "commit")
            if sha is None or commit_tbl is None:
                continue
            message = get_str(commit_tbl, "message")
            if message is None:
                continue
            out.append(PrCommit(sha=sha, message=message))
        return Ok(out)

    def extract_release_notes(self, pr_number: int) -> Result[str, ReleaseError]:
        commits = self.pr_commits(pr_number)
        if isinstance(commits, Err):
            return commits
        return Ok(release_notes_from_commits(commits.value, repo_name=self.repo_name))
