"""
Operator prompts — the ask-user capability.

The orchestrator needs four interactions: a blocking alert, a yes/no
confirmation, a free-text answer, and a multi-select of tools.  The
engine only talks to the ``Prompter`` interface so tests can script
the answers (see ``onboard.adapters.mock.ScriptedPrompter``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import click


class Prompter(ABC):
    """Abstract interface for operator interaction."""

    @abstractmethod
    def alert(self, title: str, message: str) -> None:
        """Show a message and block until the operator acknowledges it."""

    @abstractmethod
    def confirm(self, title: str, message: str, default: bool = True) -> bool:
        """Ask a yes/no question.

        An empty answer takes ``default``; cancelling counts as no.
        """

    @abstractmethod
    def prompt(self, title: str, message: str, default: str = "") -> str | None:
        """Ask for a line of text.

        Returns:
            The answer, or None if the operator cancelled.
        """

    @abstractmethod
    def choose_many(
        self,
        title: str,
        message: str,
        options: Sequence[str],
        defaults: Sequence[str] = (),
    ) -> list[str]:
        """Let the operator pick any subset of ``options``."""


class TerminalPrompter(Prompter):
    """Prompter backed by click on the controlling terminal."""

    def alert(self, title: str, message: str) -> None:
        click.echo()
        click.secho(f"── {title} ──", bold=True)
        click.echo(message)
        click.pause("Press any key to continue...")

    def confirm(self, title: str, message: str, default: bool = True) -> bool:
        click.secho(f"── {title} ──", bold=True)
        try:
            return click.confirm(message, default=default)
        except click.Abort:
            return False

    def prompt(self, title: str, message: str, default: str = "") -> str | None:
        click.secho(f"── {title} ──", bold=True)
        try:
            value = click.prompt(message, default=default or None, show_default=bool(default))
        except click.Abort:
            return None
        return str(value).strip()

    def choose_many(
        self,
        title: str,
        message: str,
        options: Sequence[str],
        defaults: Sequence[str] = (),
    ) -> list[str]:
        if not options:
            return []

        click.secho(f"── {title} ──", bold=True)
        click.echo(message)
        for i, opt in enumerate(options, 1):
            mark = "x" if opt in defaults else " "
            click.echo(f"  [{mark}] {i:2d}. {opt}")

        default_answer = ",".join(str(options.index(d) + 1) for d in defaults if d in options)
        try:
            raw = click.prompt(
                "Numbers or names (comma-separated, '-' for none)",
                default=default_answer or "-",
            )
        except click.Abort:
            return []

        raw = raw.strip()
        if raw in ("", "-"):
            return []

        chosen: list[str] = []
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            if part.isdigit() and 1 <= int(part) <= len(options):
                value = options[int(part) - 1]
            elif part in options:
                value = part
            else:
                click.secho(f"  [!] ignoring unknown choice: {part!r}", fg="yellow")
                continue
            if value not in chosen:
                chosen.append(value)
        return chosen
