from __future__ import annotations

from pathlib import Path

import pytest

from taorelease.core.result import Err, Ok, Result
from taorelease.platform.process import ProcessError
from taorelease.release.infra import gh as gh_mod


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "api", "repos/oat-sa/tao-core"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


def test_gh_api_json_retries_transient_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []
    responses: list[Result[str, ProcessError]] = [
        _err(stderr="HTTP 503 Service Unavailable", returncode=1),
        Ok('{"ok": true}'),
    ]

    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        calls.append(cmd)
        return responses.pop(0)

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.gh_api_json(cwd=tmp_path, endpoint="repos/oat-sa/tao-core", token=None)

    assert isinstance(result, Ok)
    assert result.value == {"ok": True}
    assert len(calls) == 2


def test_gh_api_json_does_not_retry_on_non_transient(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        calls.append(cmd)
        return _err(stderr="HTTP 404 Not Found", returncode=1)

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.gh_api_json(cwd=tmp_path, endpoint="repos/oat-sa/tao-core", token=None)

    assert isinstance(result, Err)
    assert result.error.kind == "forge_failed"
    assert result.error.hint == "HTTP 404 Not Found"
    assert len(calls) == 1


def test_gh_api_json_gives_up_after_max_attempts(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []
    delays: list[float] = []

    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        calls.append(cmd)
        return _err(stderr="HTTP 502 Bad Gateway")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", delays.append)

    result = gh_mod.gh_api_json(cwd=tmp_path, endpoint="repos/oat-sa/tao-core", token=None)

    assert isinstance(result, Err)
    assert len(calls) == gh_mod.GH_READ_RETRY_ATTEMPTS
    assert delays == [1.0, 2.0]


def test_gh_api_json_invalid_json(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cmd, cwd, env, timeout
        return Ok("<html>")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)

    result = gh_mod.gh_api_json(cwd=tmp_path, endpoint="repos/oat-sa/tao-core", token=None)

    assert isinstance(result, Err)
    assert "invalid JSON" in result.error.message


def test_gh_api_post_passes_fields_and_token(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    seen: dict[str, object] = {}

    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        seen["cmd"] = cmd
        seen["token"] = env.get("GH_TOKEN") if env is not None else None
        return Ok('{"id": 1}')

    monkeypatch.setattr(gh_mod, "run_process", fake_run)

    result = gh_mod.gh_api_post(
        cwd=tmp_path,
        endpoint="repos/oat-sa/tao-core/releases",
        fields={"tag_name": "v1.3.0", "body": "a=b"},
        token="ghp_secret",
    )

    assert result == Ok({"id": 1})
    assert seen["cmd"] == [
        "gh",
        "api",
        "repos/oat-sa/tao-core/releases",
        "-X",
        "POST",
        "-f",
        "tag_name=v1.3.0",
        "-f",
        "body=a=b",
    ]
    assert seen["token"] == "ghp_secret"


def test_gh_api_post_is_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, env, timeout
        calls.append(cmd)
        return _err(stderr="HTTP 503 Service Unavailable")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.gh_api_post(cwd=tmp_path, endpoint="repos/x/y/pulls", fields={}, token=None)

    assert isinstance(result, Err)
    assert len(calls) == 1


def test_gh_env_without_token_inherits() -> None:
    assert gh_mod.gh_env(None) is None
    assert gh_mod.gh_env("") is None


def test_ensure_gh_available_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: None)

    result = gh_mod.ensure_gh_available()

    assert isinstance(result, Err)
    assert result.error.kind == "gh_missing"


def test_ensure_gh_auth_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(
        cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cmd, cwd, env, timeout
        return _err(stderr="You are not logged into any GitHub hosts.")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)

    result = gh_mod.ensure_gh_auth(cwd=tmp_path, token=None)

    assert isinstance(result, Err)
    assert result.error.kind == "gh_auth_required"


def test_gh_env_with_token_only_sets_gh_token() -> None:
    assert gh_mod.gh_env("secret") == {"GH_TOKEN": "secret"}
