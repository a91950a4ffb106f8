"""Operator checkpoints.

In interactive mode every question goes to the prompter. In non-interactive
mode confirmations are granted automatically and text questions take their
default; each automatic answer is still written to the console so the run
log shows which checkpoints were bypassed.
"""

from __future__ import annotations

from collections.abc import Sequence

from taorelease.core.result import Err, Ok, Result
from taorelease.output.console import ConsoleProtocol
from taorelease.release.contracts import Prompter, Question
from taorelease.release.errors import ReleaseError


class ConfirmationGate:
    def __init__(self, prompter: Prompter, console: ConsoleProtocol, *, interactive: bool) -> None:
        self._prompter = prompter
        self._console = console
        self._interactive = interactive

    @property
    def interactive(self) -> bool:
        return self._interactive

    def confirm(self, name: str, message: str, *, default: bool = True) -> bool:
        if not self._interactive:
            self._console.info(f"{message} auto-confirmed (non-interactive)")
            return True
        answer = self._prompter.ask(Question(type="confirm", name=name, message=message, default=default))
        return bool(answer)

    def ask_text(
        self,
        name: str,
        message: str,
        *,
        default: str = "",
        override: str | None = None,
        secret: bool = False,
    ) -> str:
        if override:
            return override
        if not self._interactive:
            return default
        answer = self._prompter.ask(
            Question(type="input", name=name, message=message, default=default, secret=secret)
        )
        return str(answer) if answer is not None else default

    def choose(
        self,
        name: str,
        message: str,
        *,
        choices: Sequence[str],
        override: str | None,
        option: str,
        scope: str,
    ) -> Result[str, ReleaseError]:
        """Pick one of ``choices``; an ``override`` must be one of them."""
        if override:
            if override not in choices:
                return Err(
                    ReleaseError(
                        kind="target_not_found",
                        message=f"{override} not found in {scope}",
                        hint=f"available: {', '.join(choices)}" if choices else None,
                    )
                )
            return Ok(override)

        if not self._interactive:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"missing {option} in non-interactive mode",
                )
            )

        if not choices:
            return Err(ReleaseError(kind="target_not_found", message=f"nothing to release in {scope}"))

        answer = self._prompter.ask(
            Question(type="list", name=name, message=message, choices=tuple(choices))
        )
        if not isinstance(answer, str) or answer not in choices:
            return Err(ReleaseError(kind="invalid_input", message=f"invalid choice: {answer!r}"))
        return Ok(answer)
