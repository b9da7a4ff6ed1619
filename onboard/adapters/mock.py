"""
Mock adapters — test doubles for commands and operator prompts.

``MockRunner`` records every command instead of running it and can be
told to fail specific commands.  ``ScriptedPrompter`` answers prompts
from queues prepared by the test.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
from pathlib import Path

from onboard.adapters.prompt import Prompter
from onboard.adapters.shell.command import CommandResult, CommandRunner
from onboard.core.errors import CommandError
from onboard.core.persistence.journal import Journal


class MockRunner(CommandRunner):
    """CommandRunner that never spawns a process.

    By default every command succeeds with empty output.  Use
    ``set_failure`` / ``set_output`` keyed on a command prefix
    (e.g. ``"pyenv install"``) to change that.
    """

    def __init__(self, journal: Journal | None = None, *, dry_run: bool = False):
        super().__init__(journal or Journal(echo=False), dry_run=dry_run)
        self.calls: list[list[str]] = []
        self.interactive_calls: list[list[str]] = []
        self._failures: dict[str, int] = {}
        self._outputs: dict[str, str] = {}
        self._queries: dict[str, str | None] = {}

    # ── Configuration ───────────────────────────────────────────

    def set_failure(self, prefix: str, returncode: int = 1) -> None:
        self._failures[prefix] = returncode

    def set_output(self, prefix: str, output: str) -> None:
        self._outputs[prefix] = output

    def set_query(self, prefix: str, output: str | None) -> None:
        self._queries[prefix] = output

    # ── Inspection ──────────────────────────────────────────────

    @property
    def commands(self) -> list[str]:
        """Every recorded command as a single string."""
        return [" ".join(c) for c in self.calls]

    def ran(self, prefix: str) -> bool:
        return any(c.startswith(prefix) for c in self.commands)

    # ── CommandRunner overrides ─────────────────────────────────

    @staticmethod
    def _match(table: Mapping[str, object], cmd: str):
        for prefix, value in table.items():
            if cmd.startswith(prefix):
                return prefix, value
        return None

    def run(
        self,
        step: str,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        check: bool = True,
    ) -> CommandResult:
        argv = [str(a) for a in argv]
        cmd = " ".join(argv)
        if self.dry_run:
            self.journal.info(step, f"DRY-RUN: would exec: {cmd}")
            return CommandResult(argv=argv, simulated=True)

        self.calls.append(argv)
        failure = self._match(self._failures, cmd)
        if failure is not None:
            returncode = failure[1]
            self.journal.error(step, "command failed", cmd=cmd)
            if check:
                raise CommandError(argv, returncode, "mock failure")
            return CommandResult(argv=argv, returncode=returncode, output="mock failure")

        output = self._match(self._outputs, cmd)
        self.journal.info(step, "command ok", cmd=cmd)
        return CommandResult(argv=argv, output=output[1] if output else "")

    def run_interactive(
        self,
        step: str,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> int:
        argv = [str(a) for a in argv]
        if self.dry_run:
            return 0
        self.interactive_calls.append(argv)
        failure = self._match(self._failures, " ".join(argv))
        if failure is None:
            return 0
        if check:
            raise CommandError(argv, failure[1])
        return failure[1]

    def query(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
    ) -> str | None:
        hit = self._match(self._queries, " ".join(str(a) for a in argv))
        return hit[1] if hit else None


class ScriptedPrompter(Prompter):
    """Prompter that answers from pre-loaded queues.

    Unscripted confirmations take their default; unscripted text prompts
    return their default; unscripted selections return the defaults.
    """

    def __init__(
        self,
        *,
        confirms: Sequence[bool] = (),
        answers: Sequence[str | None] = (),
        choices: Sequence[Sequence[str]] = (),
    ):
        self._confirms = deque(confirms)
        self._answers = deque(answers)
        self._choices = deque(list(c) for c in choices)
        self.alerts: list[tuple[str, str]] = []
        self.asked: list[str] = []

    def alert(self, title: str, message: str) -> None:
        self.alerts.append((title, message))

    def confirm(self, title: str, message: str, default: bool = True) -> bool:
        self.asked.append(title)
        return self._confirms.popleft() if self._confirms else default

    def prompt(self, title: str, message: str, default: str = "") -> str | None:
        self.asked.append(title)
        return self._answers.popleft() if self._answers else default

    def choose_many(
        self,
        title: str,
        message: str,
        options: Sequence[str],
        defaults: Sequence[str] = (),
    ) -> list[str]:
        self.asked.append(title)
        return self._choices.popleft() if self._choices else list(defaults)
