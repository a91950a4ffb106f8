from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

ReleaseBump = Literal["major", "minor", "patch"]

# Leading MAJOR.MINOR.PATCH core; anything after it is dropped.
_COERCE_RE = re.compile(r"^\s*v?(\d+)\.(\d+)\.(\d+)")

_NUM = r"0|[1-9]\d*"
_PRE_ID = r"0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*"
_STRICT_RE = re.compile(
    rf"^v?({_NUM})\.({_NUM})\.({_NUM})"
    rf"(?:-((?:{_PRE_ID})(?:\.(?:{_PRE_ID}))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


type _PreKey = tuple[int, tuple[tuple[int, int, str], ...]]


def _prerelease_key(ids: tuple[str, ...]) -> _PreKey:
    # A release sorts after all of its pre-releases; numeric ids sort before alphanumeric ones.
    if not ids:
        return (1, ())
    return (0, tuple((0, int(i), "") if i.isdigit() else (1, 0, i) for i in ids))


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def _key(self) -> tuple[int, int, int, _PreKey]:
        return (self.major, self.minor, self.patch, _prerelease_key(self.prerelease))

    def __lt__(self, other: SemVer) -> bool:
        return self._key() < other._key()

    def __le__(self, other: SemVer) -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: SemVer) -> bool:
        return self._key() > other._key()

    def __ge__(self, other: SemVer) -> bool:
        return self._key() >= other._key()

    def to_tag(self) -> str:
        return f"v{self}"

    def bump(self, kind: ReleaseBump) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def coerce_version(text: str) -> SemVer | None:
    """Parse a tag read from history, keeping only its numeric core.

    ``v1.2.3``, ``3.2.5.8`` and ``4.12.13-8`` all coerce; ``foo`` does not.
    """
    m = _COERCE_RE.match(text)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_version(text: str) -> SemVer | None:
    """Parse a complete semantic version, pre-release and build included.

    Nothing is dropped: ``1.3.0-rc.1`` keeps its pre-release, while
    ``2.0.0.1`` or ``1.3`` are rejected. A leading ``v`` is accepted.
    """
    m = _STRICT_RE.match(text.strip())
    if m is None:
        return None
    pre, build = m.group(4), m.group(5)
    return SemVer(
        int(m.group(1)),
        int(m.group(2)),
        int(m.group(3)),
        prerelease=tuple(pre.split(".")) if pre else (),
        build=tuple(build.split(".")) if build else (),
    )
