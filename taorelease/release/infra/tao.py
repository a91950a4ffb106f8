"""TAO instance access: layout checks, extension manifests and build scripts."""

from __future__ import annotations

import json
import re
from pathlib import Path

from taorelease.core.result import Err, Ok, Result
from taorelease.core.structured import as_str_dict, get_str
from taorelease.platform.process import run_silent
from taorelease.release.errors import ReleaseError

_INSTANCE_ENTRIES = ("tao", "generis", "index.php", "config")

# 'version' => '1.2.3'
_MANIFEST_VERSION_RE = re.compile(
    r"""(?P<key>(['"])version\2\s*=>\s*)(?P<quote>['"])(?P<version>[^'"]*)(?P=quote)"""
)


def is_tao_instance(root: Path) -> bool:
    if not root.is_dir():
        return False
    return all((root / entry).exists() for entry in _INSTANCE_ENTRIES)


def is_installed(root: Path) -> bool:
    return (root / "config" / "generis.conf.php").is_file()


def list_extensions(root: Path) -> list[str]:
    """Subdirectories of the instance holding a ``manifest.php``."""
    return sorted(p.name for p in root.iterdir() if p.is_dir() and (p / "manifest.php").is_file())


def read_manifest_version(extension_dir: Path) -> Result[str | None, ReleaseError]:
    manifest = extension_dir / "manifest.php"
    try:
        content = manifest.read_text(encoding="utf-8")
    except OSError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"cannot read {manifest}: {e}"))

    m = _MANIFEST_VERSION_RE.search(content)
    return Ok(m.group("version") if m else None)


def write_manifest_version(extension_dir: Path, version: str) -> Result[None, ReleaseError]:
    manifest = extension_dir / "manifest.php"
    try:
        content = manifest.read_text(encoding="utf-8")
    except OSError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"cannot read {manifest}: {e}"))

    updated, count = _MANIFEST_VERSION_RE.subn(
        lambda m: f"{m.group('key')}{m.group('quote')}{version}{m.group('quote')}",
        content,
        count=1,
    )
    if count == 0:
        return Err(
            ReleaseError(
                kind="invalid_target",
                message=f"no version entry found in {manifest}",
            )
        )

    try:
        manifest.write_text(updated, encoding="utf-8")
    except OSError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"cannot write {manifest}: {e}"))
    return Ok(None)


def read_composer_name(extension_dir: Path) -> Result[str | None, ReleaseError]:
    composer = extension_dir / "composer.json"
    try:
        data_obj: object = json.loads(composer.read_text(encoding="utf-8"))
    except OSError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"cannot read {composer}: {e}"))
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="invalid_target", message=f"invalid JSON in {composer}: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Ok(None)
    return Ok(get_str(data, "name"))


def build_assets(root: Path, extension: str) -> Result[None, ReleaseError]:
    """Run the grunt ``sass`` and ``bundle`` tasks of ``extension``."""
    build_dir = root / "tao" / "views" / "build"
    if not (build_dir / "node_modules" / ".bin" / "grunt").exists():
        installed = run_silent(["npm", "install"], cwd=build_dir)
        if isinstance(installed, Err):
            return Err(ReleaseError(kind="build_failed", message=f"npm install failed: {installed.error}"))

    for task in ("sass", "bundle"):
        grunt_task = f"{extension.lower()}{task}"
        result = run_silent(["./node_modules/.bin/grunt", grunt_task], cwd=build_dir)
        if isinstance(result, Err):
            return Err(ReleaseError(kind="build_failed", message=f"grunt {grunt_task} failed"))
    return Ok(None)


def update_translations(root: Path, extension: str, www_user: str) -> Result[None, ReleaseError]:
    """Regenerate the extension translations as the web server user."""
    cmd = [
        "sudo",
        "-u",
        www_user,
        "php",
        "tao/scripts/taoTranslate.php",
        "-a=updateAll",
        f"-e={extension}",
    ]
    result = run_silent(cmd, cwd=root)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="build_failed",
                message=f"Unable to update translations of {extension}",
                hint=str(result.error),
            )
        )
    return Ok(None)
