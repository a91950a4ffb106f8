"""Git repository gateway.

``Repository`` wraps the git CLI for every primitive a release needs. All
operations return Result types. Network-bound commands run with a longer
timeout than local ones.

``merge_back`` is the only operation with two failure variants: a
``MergeConflict`` when the merge stopped on unmerged paths, and a plain
``GitError`` for everything else. Conflicts are detected here, from the
index, so callers never have to inspect error text.

Usage:
    repo = Repository(Path("/path/to/repo"), origin="origin")

    match repo.merge_back("develop", "master"):
        case Ok(_):
            print("develop is up to date")
        case Err(MergeConflict() as conflict):
            print(conflict.summary())
        case Err(e):
            print(f"merge failed: {e.message}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from taorelease.core.result import Err, Ok, Result
from taorelease.platform.process import ProcessError
from taorelease.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = {"fetch", "pull", "push", "clone"}

_GITHUB_REMOTE_RE = re.compile(r"github\.com[/:](?P<slug>[\w.-]+/[\w.-]+?)(?:\.git)?/?$")

__all__ = [
    "GitError",
    "MergeConflict",
    "Repository",
    "parse_github_slug",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class MergeConflict:
    """A merge stopped on conflicting paths.

    Attributes:
        base: Branch being updated
        source: Branch merged into ``base``
        paths: Unmerged paths reported by the index
    """

    base: str
    source: str
    paths: tuple[str, ...]

    def summary(self) -> str:
        files = ", ".join(self.paths) if self.paths else "unknown files"
        return f"CONFLICTS: merging {self.source} into {self.base} ({files})"


def parse_github_slug(url: str) -> str | None:
    """Extract ``owner/repo`` from a GitHub remote URL (https or ssh)."""
    m = _GITHUB_REMOTE_RE.search(url.strip())
    if m is None:
        return None
    return m.group("slug")


def _parse_branch_list(output: str) -> list[str]:
    """Parse ``git branch -a`` output.

    Local branches come back as ``name``, remote ones as
    ``remotes/<origin>/<name>``. Symbolic refs (``HEAD -> ...``) keep only
    their left-hand side.
    """
    branches: list[str] = []
    for raw in output.splitlines():
        line = raw[2:] if len(raw) > 2 else raw.strip()
        name = line.split(" -> ", 1)[0].strip()
        if not name or name.startswith("("):
            continue
        branches.append(name)
    return branches


class Repository:
    """Git repository gateway.

    Attributes:
        path: Path to the repository root
        origin: Name of the remote used for fetch/pull/push
    """

    def __init__(self, path: Path, *, origin: str = "origin") -> None:
        self.path = path
        self.origin = origin

    # -- queries ---------------------------------------------------------

    def get_branches(self) -> Result[list[str], GitError]:
        """All branches, local and remote-tracking."""
        result = self._git(["branch", "-a", "--no-color"], "branch -a")
        if isinstance(result, Err):
            return result
        return Ok(_parse_branch_list(result.value))

    def get_local_branches(self) -> Result[list[str], GitError]:
        result = self.get_branches()
        if isinstance(result, Err):
            return result
        return Ok([b for b in result.value if not b.startswith("remotes/")])

    def has_branch(self, name: str) -> Result[bool, GitError]:
        """True when ``name`` is listed by ``git branch -a``.

        Pass ``remotes/<origin>/<branch>`` to check the remote side.
        """
        result = self.get_branches()
        if isinstance(result, Err):
            return result
        return Ok(name in result.value)

    def has_tag(self, name: str) -> Result[bool, GitError]:
        result = self._git(["tag", "--list"], "tag --list")
        if isinstance(result, Err):
            return result
        return Ok(name in {t.strip() for t in result.value.splitlines()})

    def has_diff(self, a: str, b: str) -> Result[bool, GitError]:
        """True when ``a..b`` has at least one changed file."""
        result = self._git(["diff", "--shortstat", f"{a}..{b}"], "diff --shortstat")
        if isinstance(result, Err):
            return result
        return Ok(bool(result.value.strip()))

    def has_local_changes(self) -> Result[bool, GitError]:
        """True when tracked files are modified, staged or conflicted.

        Untracked files are ignored.
        """
        result = self._git(["status", "--porcelain", "--untracked-files=no"], "status")
        if isinstance(result, Err):
            return result
        return Ok(bool(result.value.strip()))

    def has_sign_key(self) -> bool:
        return bool(self._run(["config", "--get", "user.signingkey"]).unwrap_or("").strip())

    def get_last_tag(self) -> Result[str | None, GitError]:
        """Most recent tag reachable from HEAD, or None when there is none."""
        result = self._run(["describe", "--tags", "--abbrev=0"])
        match result:
            case Ok(stdout):
                return Ok(stdout.strip() or None)
            case Err(e):
                text = f"{e.stderr}\n{e.stdout}".lower()
                if "no names found" in text or "no tags can describe" in text:
                    return Ok(None)
                return Err(self._error("describe --tags", e))

    def commit_messages(self, since: str | None) -> Result[list[str], GitError]:
        """Full messages of non-merge commits in ``since..HEAD``."""
        rev = f"{since}..HEAD" if since else "HEAD"
        result = self._git(["log", "--no-merges", "--format=%B%x1e", rev], "log")
        if isinstance(result, Err):
            return result
        return Ok([m.strip() for m in result.value.split("\x1e") if m.strip()])

    def get_repository_name(self) -> Result[str | None, GitError]:
        """``owner/repo`` of the origin remote, None if it is not on GitHub."""
        result = self._git(["remote", "get-url", self.origin], "remote get-url")
        if isinstance(result, Err):
            return result
        return Ok(parse_github_slug(result.value))

    # -- branch operations ------------------------------------------------

    def fetch(self) -> Result[None, GitError]:
        return self._git_ok(["fetch", self.origin], "fetch")

    def checkout(self, branch: str) -> Result[None, GitError]:
        return self._git_ok(["checkout", branch], "checkout")

    def checkout_non_local(self, branch: str) -> Result[None, GitError]:
        """Create a local branch tracking ``<origin>/<branch>`` and switch to it."""
        return self._git_ok(
            ["checkout", "-b", branch, "--track", f"{self.origin}/{branch}"], "checkout --track"
        )

    def local_branch(self, name: str) -> Result[None, GitError]:
        """Create ``name`` from HEAD and switch to it."""
        return self._git_ok(["checkout", "-b", name], "checkout -b")

    def pull(self, branch: str) -> Result[None, GitError]:
        """Fetch, switch to ``branch`` (creating it from origin if needed), then pull."""
        fetched = self.fetch()
        if isinstance(fetched, Err):
            return fetched

        local = self.get_local_branches()
        if isinstance(local, Err):
            return local

        switched = self.checkout(branch) if branch in local.value else self.checkout_non_local(branch)
        if isinstance(switched, Err):
            return switched

        return self._git_ok(["pull", self.origin, branch], "pull")

    def push(self, branch: str) -> Result[None, GitError]:
        return self._git_ok(["push", self.origin, branch], "push")

    def delete_branch(self, name: str) -> Result[None, GitError]:
        """Delete ``name`` on the remote, then locally."""
        remote = self._git_ok(["push", self.origin, name, "--delete"], "push --delete")
        if isinstance(remote, Err):
            return remote
        return self._git_ok(["branch", "-D", name], "branch -D")

    def tag(self, branch: str, tag_name: str, message: str, *, sign: bool = False) -> Result[None, GitError]:
        """Tag the tip of ``branch`` (after pulling it) and push the tag."""
        switched = self.checkout(branch)
        if isinstance(switched, Err):
            return switched

        pulled = self._git_ok(["pull", self.origin, branch], "pull")
        if isinstance(pulled, Err):
            return pulled

        created = self._git_ok(["tag", "-s" if sign else "-a", tag_name, "-m", message], "tag")
        if isinstance(created, Err):
            return created

        return self._git_ok(["push", self.origin, f"refs/tags/{tag_name}"], "push tag")

    def commit_and_push(self, branch: str, message: str) -> Result[list[str], GitError]:
        """Commit every modified tracked file and push ``branch``.

        Returns the committed paths (empty when nothing changed, in which
        case nothing is committed or pushed).
        """
        diff = self._git(["diff", "--name-only"], "diff --name-only")
        if isinstance(diff, Err):
            return diff

        changes = [line.strip() for line in diff.value.splitlines() if line.strip()]
        if not changes:
            return Ok([])

        committed = self._git_ok(["commit", "-m", message, "--", *changes], "commit")
        if isinstance(committed, Err):
            return committed

        pushed = self.push(branch)
        if isinstance(pushed, Err):
            return pushed
        return Ok(changes)

    def merge_pr(self, base: str, feature: str) -> Result[None, GitError]:
        """Merge ``feature`` into ``base`` with a merge commit and push ``base``."""
        prepared = self._checkout_and_pull(base)
        if isinstance(prepared, Err):
            return prepared

        merged = self._git_ok(["merge", "--no-ff", "--no-edit", feature], "merge --no-ff")
        if isinstance(merged, Err):
            return merged

        return self.push(base)

    def merge_back(self, base: str, release: str) -> Result[None, MergeConflict | GitError]:
        """Merge ``release`` into ``base`` and push ``base``."""
        prepared = self._checkout_and_pull(base)
        if isinstance(prepared, Err):
            return prepared

        merged = self._run(["merge", "--no-edit", release])
        if isinstance(merged, Err):
            conflicted = self.unmerged_paths()
            if isinstance(conflicted, Ok) and conflicted.value:
                return Err(MergeConflict(base=base, source=release, paths=tuple(conflicted.value)))
            return Err(self._error("merge", merged.error))

        pushed = self.push(base)
        if isinstance(pushed, Err):
            return pushed
        return Ok(None)

    def unmerged_paths(self) -> Result[list[str], GitError]:
        result = self._git(["diff", "--name-only", "--diff-filter=U"], "diff --diff-filter=U")
        if isinstance(result, Err):
            return result
        return Ok([line.strip() for line in result.value.splitlines() if line.strip()])

    # -- internals ---------------------------------------------------------

    def _checkout_and_pull(self, branch: str) -> Result[None, GitError]:
        switched = self.checkout(branch)
        if isinstance(switched, Err):
            return switched
        return self._git_ok(["pull", self.origin, branch], "pull")

    def _git(self, args: list[str], command: str) -> Result[str, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error(command, result.error))
        return result

    def _git_ok(self, args: list[str], command: str) -> Result[None, GitError]:
        result = self._git(args, command)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def _error(self, command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
