from __future__ import annotations

import typer

from taorelease.output.console import ConsoleProtocol, Style
from taorelease.release.contracts import Question


class TyperPrompter:
    """Prompter answering release questions on the terminal."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def ask(self, question: Question) -> object:
        match question.type:
            case "confirm":
                return typer.confirm(question.message, default=bool(question.default))
            case "input":
                default = question.default if isinstance(question.default, str) else ""
                return typer.prompt(
                    question.message,
                    default=default,
                    hide_input=question.secret,
                    show_default=not question.secret and bool(default),
                )
            case "list":
                return self._pick(question)

    def _pick(self, question: Question) -> str:
        self._console.print(question.message, Style.BOLD)
        for i, choice in enumerate(question.choices, start=1):
            self._console.print(f"{i:2}. {choice}", Style.DIM)

        while True:
            raw = typer.prompt("Pick a number", default="1")
            try:
                idx = int(raw)
            except ValueError:
                self._console.error("invalid number")
                continue
            if idx < 1 or idx > len(question.choices):
                self._console.error("out of range")
                continue
            return question.choices[idx - 1]
