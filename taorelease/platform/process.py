"""Subprocess execution for the tools a release drives.

git, gh, npm, grunt and php all go through here. Captured commands run
with prompts disabled: their output is swallowed, so a credential or
confirmation prompt would hang the release with nothing on screen.
Streamed commands (builds) keep the operator's terminal and environment.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from taorelease.core.result import Err, Ok, Result

__all__ = ["CAPTURED_ENV", "ProcessError", "child_env", "run", "run_silent"]

# Applied to every captured command.
CAPTURED_ENV: Mapping[str, str] = {
    "GIT_TERMINAL_PROMPT": "0",
    "GH_PROMPT_DISABLED": "1",
    "GIT_PAGER": "cat",
    "GH_PAGER": "cat",
}


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A tool that could not be started, timed out or exited non-zero.

    ``returncode`` is -1 when the process never ran to completion.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        return f"{shown} failed (exit {self.returncode})"

    @property
    def details(self) -> str:
        """Most useful output for an error hint."""
        return self.stderr.strip() or self.stdout.strip() or str(self)


def child_env(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for a captured command: ours, prompts off, then ``extra``."""
    env = dict(os.environ)
    env.update(CAPTURED_ENV)
    if extra:
        env.update(extra)
    return env


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` with captured output and return its stdout.

    ``env`` holds extra variables (a token, for instance) layered over
    :func:`child_env`.
    """
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=child_env(env),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(command, -1, partial, f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(command, -1, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(command, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)


def run_silent(cmd: list[str], cwd: Path) -> Result[None, ProcessError]:
    """Run ``cmd`` with its output streamed to the terminal."""
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), check=False)
    except OSError as e:
        return Err(ProcessError(tuple(cmd), -1, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(tuple(cmd), proc.returncode, "", ""))
    return Ok(None)
