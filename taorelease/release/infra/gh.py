from __future__ import annotations

import json
import shutil
from pathlib import Path
from time import sleep

from taorelease.core.result import Err, Ok, Result
from taorelease.platform.process import ProcessError
from taorelease.platform.process import run as run_process
from taorelease.release.errors import ReleaseError, ReleaseErrorKind

GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0


def gh_env(token: str | None) -> dict[str, str] | None:
    """Extra variables for gh; ``token`` (if any) overrides the stored login."""
    if not token:
        return None
    return {"GH_TOKEN": token}


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    kind: ReleaseErrorKind,
    message: str,
    token: str | None = None,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=cwd, env=gh_env(token), timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(ReleaseError(kind=kind, message=message, hint=error.stderr.strip() or hint))

    return Err(ReleaseError(kind=kind, message=message, hint=hint))


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, cwd: Path, token: str | None) -> Result[None, ReleaseError]:
    result = run_process(
        ["gh", "auth", "status"], cwd=cwd, env=gh_env(token), timeout=GH_TIMEOUT_SECONDS
    )
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login (or set GITHUB_TOKEN)",
            )
        )
    return Ok(None)


def _decode(stdout: str, endpoint: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(stdout)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="forge_failed",
                message=f"gh api returned invalid JSON: {e}",
                hint=endpoint,
            )
        )
    return Ok(obj)


def gh_api_json(*, cwd: Path, endpoint: str, token: str | None) -> Result[object, ReleaseError]:
    """GET ``endpoint``; retried on transient failures."""
    result = run_gh_read(
        cwd=cwd,
        cmd=["gh", "api", endpoint],
        kind="forge_failed",
        message=f"gh api failed: {endpoint}",
        token=token,
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result
    return _decode(result.value, endpoint)


def gh_api_post(
    *, cwd: Path, endpoint: str, fields: dict[str, str], token: str | None
) -> Result[object, ReleaseError]:
    """POST string ``fields`` to ``endpoint``. Never retried."""
    cmd = ["gh", "api", endpoint, "-X", "POST"]
    for key, value in fields.items():
        cmd.extend(["-f", f"{key}={value}"])

    result = run_process(cmd, cwd=cwd, env=gh_env(token), timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="forge_failed",
                message=f"gh api POST failed: {endpoint}",
                hint=result.error.stderr.strip() or None,
            )
        )
    return _decode(result.value, endpoint)
