from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from taorelease.core.config import ReleaseDefaults, config_path, load_config_or_default
from taorelease.core.errors import ErrorCode
from taorelease.core.result import Err
from taorelease.output.console import ConsoleProtocol, RichConsole

_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    config: ReleaseDefaults
    console: ConsoleProtocol

    def token(self) -> str | None:
        """GitHub token: environment first, then the config file."""
        for name in _TOKEN_ENV_VARS:
            value = os.environ.get(name, "").strip()
            if value:
                return value
        return self.config.token


def build_context() -> CLIContext:
    path = config_path()
    config = load_config_or_default(path)
    if isinstance(config, Err):
        typer.echo(f"error: {config.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(cwd=Path.cwd(), config=config.value, console=RichConsole())
