"""Git operations.

Usage:
    from taorelease.git import Repository

    repo = Repository(Path("/path/to/repo"), origin="origin")
    if repo.has_tag("v1.2.3").unwrap_or(False):
        print("already released")
"""

from taorelease.git.repository import (
    GitError,
    MergeConflict,
    Repository,
    parse_github_slug,
)

__all__ = [
    "GitError",
    "MergeConflict",
    "Repository",
    "parse_github_slug",
]
