"""
Shell command adapter — the one place installers touch ``subprocess``.

Every external command runs through ``CommandRunner.run``: the command
is journaled, stdout and stderr are captured together, and a non-zero
exit becomes ``CommandError`` carrying the output.

In simulate-only mode nothing is executed; the runner journals what it
*would* have run and returns an empty successful result.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from onboard.core.errors import CommandError
from onboard.core.persistence.journal import Journal

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 500


@dataclass
class CommandResult:
    """Outcome of one external command."""

    argv: list[str]
    returncode: int = 0
    output: str = ""
    duration_ms: int = 0
    simulated: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _truncate(text: str, limit: int = _OUTPUT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


class CommandRunner:
    """Execute installer commands with journaling and simulate support.

    Args:
        journal: Where every command and its outcome is recorded.
        dry_run: Simulate-only mode; nothing is executed.
        env: Default environment for commands (see ``base_env``).
    """

    def __init__(
        self,
        journal: Journal,
        *,
        dry_run: bool = False,
        env: Mapping[str, str] | None = None,
    ):
        self.journal = journal
        self.dry_run = dry_run
        self.env = dict(env) if env is not None else None

    def run(
        self,
        step: str,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run ``argv`` and capture combined output.

        Raises:
            CommandError: Non-zero exit (or missing executable) and ``check``.
        """
        argv = [str(a) for a in argv]
        cmd = " ".join(argv)

        if self.dry_run:
            self.journal.info(step, f"DRY-RUN: would exec: {cmd}")
            return CommandResult(argv=argv, simulated=True)

        self.journal.info(step, f"exec: {cmd}")
        start = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                env=dict(env) if env is not None else self.env,
                cwd=str(cwd) if cwd else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
            returncode, output = proc.returncode, (proc.stdout or "").strip()
        except OSError as e:
            returncode, output = 127, str(e)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        result = CommandResult(
            argv=argv,
            returncode=returncode,
            output=output,
            duration_ms=elapsed_ms,
        )
        fields = {"cmd": cmd}
        if output:
            fields["output"] = _truncate(output)

        if not result.ok:
            fields["error"] = f"exit status {returncode}"
            self.journal.error(step, "command failed", **fields)
            if check:
                raise CommandError(argv, returncode, output)
            return result

        self.journal.info(step, "command ok", **fields)
        return result

    def sudo(self, step: str, argv: Sequence[str], **kwargs) -> CommandResult:
        """Run under sudo; credentials are expected to be cached already."""
        return self.run(step, ["sudo", *argv], **kwargs)

    def shell(self, step: str, script: str, **kwargs) -> CommandResult:
        """Run a bash one-liner (pipes, redirects)."""
        return self.run(step, ["/bin/bash", "-c", script], **kwargs)

    def run_interactive(
        self,
        step: str,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> int:
        """Run with the operator's terminal attached (no capture).

        Returns:
            The exit code (0 in simulate-only mode).
        """
        argv = [str(a) for a in argv]
        cmd = " ".join(argv)
        if self.dry_run:
            self.journal.info(step, f"DRY-RUN: would exec interactive: {cmd}")
            return 0

        self.journal.info(step, f"exec interactive: {cmd}")
        try:
            returncode = subprocess.run(
                argv, env=dict(env) if env is not None else self.env,
            ).returncode
        except OSError as e:
            if check:
                raise CommandError(argv, 127, str(e)) from e
            return 127

        if returncode != 0 and check:
            raise CommandError(argv, returncode)
        return returncode

    def query(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
    ) -> str | None:
        """Run a read-only command and return its stripped stdout.

        Queries run even in simulate-only mode and are not journaled.

        Returns:
            stdout, or None when the command fails or is missing.
        """
        argv = [str(a) for a in argv]
        try:
            proc = subprocess.run(
                argv,
                env=dict(env) if env is not None else self.env,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.debug("query %s failed: %s", argv[0], e)
            return None
        if proc.returncode != 0:
            logger.debug("query %s exited %d", argv[0], proc.returncode)
            return None
        return proc.stdout.strip()
