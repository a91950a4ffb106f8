"""Conventional-commit bump recommendation.

Commits are classified the way the ``conventionalcommits`` changelog preset
does it: any breaking change asks for a major release, any ``feat`` for a
minor one, everything else for a patch. Commits whose header does not follow
``type(scope)!: subject`` are counted as *unset*; they still only warrant a
patch, but the release step asks the operator before going on.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from taorelease.release.domain.semver import ReleaseBump

_HEADER_RE = re.compile(r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^)]*)\))?(?P<bang>!)?: \S")
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class CommitStats:
    commits: int = 0
    unset: int = 0
    breaking: int = 0
    features: int = 0


@dataclass(frozen=True, slots=True)
class BumpRecommendation:
    release_type: ReleaseBump
    reason: str
    stats: CommitStats

    @property
    def all_unset(self) -> bool:
        return self.stats.commits > 0 and self.stats.unset == self.stats.commits


def recommend_bump(messages: Iterable[str]) -> BumpRecommendation:
    commits = unset = breaking = features = 0
    for message in messages:
        commits += 1
        header = message.strip().splitlines()[0] if message.strip() else ""
        m = _HEADER_RE.match(header)
        if m is None:
            unset += 1
            continue
        if m.group("bang") or _BREAKING_FOOTER_RE.search(message):
            breaking += 1
        elif m.group("type").lower() == "feat":
            features += 1

    release_type: ReleaseBump
    if breaking:
        release_type = "major"
    elif features:
        release_type = "minor"
    else:
        release_type = "patch"

    return BumpRecommendation(
        release_type=release_type,
        reason=f"There are {breaking} BREAKING CHANGES and {features} features",
        stats=CommitStats(commits=commits, unset=unset, breaking=breaking, features=features),
    )
