"""Operator prompts.

The sync pipeline never talks to the terminal directly; it asks a
``Prompter``. ``ClickPrompter`` is the interactive implementation and
``ScriptedPrompter`` replays queued answers (falling back to each question's
default), which is what tests and ``--defaults`` runs use.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

import click


@runtime_checkable
class Prompter(Protocol):
    def prompt_text(self, question: str, default: str = "") -> str: ...

    def choose(
        self,
        question: str,
        choices: Sequence[tuple[str, str]],
        default: str | None = None,
    ) -> str: ...

    def confirm(self, question: str, default: bool = False) -> bool: ...


class ClickPrompter:
    def prompt_text(self, question: str, default: str = "") -> str:
        value = click.prompt(
            question, default=default, show_default=bool(default), type=str
        )
        return value.strip()

    def choose(
        self,
        question: str,
        choices: Sequence[tuple[str, str]],
        default: str | None = None,
    ) -> str:
        if not choices:
            raise ValueError(f"No choices available for: {question}")
        click.echo(question)
        default_index = 1
        for i, (label, value) in enumerate(choices, 1):
            click.echo(f"  {i}) {label}")
            if value == default:
                default_index = i
        picked = click.prompt(
            "Choice",
            type=click.IntRange(1, len(choices)),
            default=default_index,
            show_default=True,
        )
        return choices[picked - 1][1]

    def confirm(self, question: str, default: bool = False) -> bool:
        return click.confirm(question, default=default)


class ScriptedPrompter:
    def __init__(self, answers: Iterable[str | bool] | None = None) -> None:
        self._answers: deque[str | bool] = deque(answers or ())
        self.asked: list[str] = []

    def _next(self) -> str | bool | None:
        if not self._answers:
            return None
        return self._answers.popleft()

    def prompt_text(self, question: str, default: str = "") -> str:
        self.asked.append(question)
        answer = self._next()
        if answer is None or answer == "":
            return default
        return str(answer).strip()

    def choose(
        self,
        question: str,
        choices: Sequence[tuple[str, str]],
        default: str | None = None,
    ) -> str:
        self.asked.append(question)
        if not choices:
            raise ValueError(f"No choices available for: {question}")
        answer = self._next()
        values = [value for _, value in choices]
        if isinstance(answer, str) and answer in values:
            return answer
        if answer not in (None, ""):
            raise ValueError(f"Scripted answer {answer!r} is not a choice for: {question}")
        if default is not None and default in values:
            return default
        return values[0]

    def confirm(self, question: str, default: bool = False) -> bool:
        self.asked.append(question)
        answer = self._next()
        if answer is None or answer == "":
            return default
        if isinstance(answer, bool):
            return answer
        return str(answer).strip().lower() in {"y", "yes", "true", "1"}
