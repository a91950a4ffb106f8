"""npm package access: package.json parsing and npm commands."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from taorelease.core.result import Err, Ok, Result
from taorelease.core.structured import StrDict, as_str_dict, get_str, get_table
from taorelease.platform.process import run_silent
from taorelease.release.errors import ReleaseError

_REPO_URL_RE = re.compile(r"github\.com[/:]([\w.-]+/[\w.-]+?)\.git$")


@dataclass(frozen=True, slots=True)
class PackageInfo:
    name: str
    version: str
    repository_url: str


def extract_repo_name(url: str) -> str | None:
    """``owner/repo`` from a package.json repository URL.

    Only GitHub URLs ending with ``.git`` are recognised.
    """
    m = _REPO_URL_RE.search(url.strip())
    if m is None:
        return None
    return m.group(1)


def _read_json(path: Path) -> Result[StrDict, ReleaseError]:
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ReleaseError(kind="invalid_target", message=f"{path} not found"))
    except OSError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"cannot read {path}: {e}"))
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"invalid JSON in {path}: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(ReleaseError(kind="invalid_target", message=f"{path} must contain a JSON object"))
    return Ok(data)


def read_package(package_dir: Path) -> Result[PackageInfo, ReleaseError]:
    """Read and validate ``package.json`` (name, version and repository.url)."""
    path = package_dir / "package.json"
    data = _read_json(path)
    if isinstance(data, Err):
        return data

    name = get_str(data.value, "name")
    version = get_str(data.value, "version")
    repository = get_table(data.value, "repository") or {}
    url = get_str(repository, "url")
    if name is None or version is None or url is None:
        return Err(
            ReleaseError(
                kind="invalid_target",
                message=f"{package_dir} does not contain a valid package",
                hint="package.json needs name, version and repository.url",
            )
        )
    return Ok(PackageInfo(name=name, version=version, repository_url=url))


def write_package_version(package_dir: Path, version: str) -> Result[None, ReleaseError]:
    """Set ``version`` in package.json and, when present, package-lock.json."""
    for filename in ("package.json", "package-lock.json"):
        path = package_dir / filename
        if filename != "package.json" and not path.exists():
            continue

        data = _read_json(path)
        if isinstance(data, Err):
            return data

        data.value["version"] = version
        if filename == "package-lock.json":
            packages = get_table(data.value, "packages")
            root_pkg = get_table(packages, "") if packages is not None else None
            if root_pkg is not None:
                root_pkg["version"] = version

        try:
            path.write_text(json.dumps(data.value, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        except OSError as e:
            return Err(ReleaseError(kind="invalid_target", message=f"cannot write {path}: {e}"))
    return Ok(None)


def npm(args: list[str], *, cwd: Path) -> Result[None, ReleaseError]:
    result = run_silent(["npm", *args], cwd=cwd)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="build_failed",
                message=f"npm {' '.join(args)} failed",
                hint=str(result.error),
            )
        )
    return Ok(None)
