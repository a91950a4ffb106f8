from __future__ import annotations

from taorelease.output.console import ConsoleProtocol, Style
from taorelease.release.contracts import ReleaseResult
from taorelease.release.errors import ReleaseError


def render_result(console: ConsoleProtocol, result: ReleaseResult) -> None:
    console.newline()
    for line in result.details:
        console.print(f"  {line}", Style.DIM)
    if result.warnings:
        console.warning(f"{result.warnings} optional step(s) failed, see above")
    console.done(result.summary)


def render_error(console: ConsoleProtocol, error: ReleaseError) -> None:
    """One error line, plus a dimmed hint when there is one."""
    prefix = f"[{error.step}] " if error.step else ""
    console.error(f"{prefix}{error.message}")
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
