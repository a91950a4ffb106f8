"""Release notes rendered from the merge commits of a release pull request."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

_MERGE_PR_RE = re.compile(r"^Merge pull request #\d+ from oat-sa/", re.IGNORECASE)
_TICKET_RE = re.compile(r"[A-Z]{2,4}-\d{1,5}")

TICKET_BROWSE_URL = "https://oat-sa.atlassian.net/browse"


@dataclass(frozen=True, slots=True)
class PrCommit:
    sha: str
    message: str


@dataclass(frozen=True, slots=True)
class ReleaseNote:
    sha: str
    message: str
    type: str | None = None
    ticket: str | None = None


def parse_note(commit: PrCommit) -> ReleaseNote | None:
    """Turn a ``Merge pull request #N from oat-sa/<branch>`` commit into a note.

    The branch name gives the change type (``feature/...``, ``fix/...``) and
    the ticket id; the PR title, on the next paragraph, gives the message.
    Other commits are ignored.
    """
    if not _MERGE_PR_RE.match(commit.message):
        return None

    parts = [p for p in re.split(r"\n+", _MERGE_PR_RE.sub("", commit.message, count=1)) if p]
    if len(parts) == 2:
        branch, title = parts
        ticket = _TICKET_RE.search(branch)
        return ReleaseNote(
            sha=commit.sha,
            message=title.strip(),
            type=branch.split("/")[0],
            ticket=ticket.group(0) if ticket else None,
        )
    return ReleaseNote(sha=commit.sha, message=" ".join(p.strip() for p in parts))


def _commit_url(repo_name: str, sha: str) -> str:
    return f"https://github.com/{repo_name}/commit/{sha}"


def render_notes(notes: Iterable[ReleaseNote], *, repo_name: str) -> str:
    lines: list[str] = []
    for note in notes:
        parts = ["-"]
        if note.type:
            parts.append(f"[{note.type}]")
        if note.ticket:
            parts.append(f"[{note.ticket}]({TICKET_BROWSE_URL}/{note.ticket})")
        parts.append(f"{note.message} ([commit]({_commit_url(repo_name, note.sha)}))")
        lines.append(" ".join(parts))
    return "".join(f"{line}\n" for line in lines)


def release_notes_from_commits(commits: Iterable[PrCommit], *, repo_name: str) -> str:
    notes = [n for n in (parse_note(c) for c in commits) if n is not None]
    return render_notes(notes, repo_name=repo_name)


def release_body(comment: str | None, notes: str | None) -> str:
    """Body of the GitHub release: operator comment followed by the notes."""
    return f"{comment or ''}\n\n**Release notes :**\n{notes or ''}"
