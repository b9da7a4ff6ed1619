"""
Phase executor — runs one phase's tools strictly in order.

For each tool the executor:

    1. skips it when run state already records it (unless --force),
    2. looks up its installer in the registry and calls it,
    3. marks it completed and persists state immediately on success,
    4. stops the phase at the first failure (no later installer runs).

In simulate-only mode the installer is not invoked and run state is
neither updated nor written.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import NoReturn

import click

from onboard.core.context import RunContext
from onboard.core.errors import CommandError, InstallError, PhaseError
from onboard.core.models.result import InstallResult
from onboard.core.persistence.state_file import save_state
from onboard.core.services.installers import Installer, get_installer

logger = logging.getLogger(__name__)


@dataclass
class PhaseReport:
    """Result of executing one phase."""

    phase: str = ""
    results: list[InstallResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def installed(self) -> list[str]:
        return [r.tool for r in self.results if r.status == "ok"]

    @property
    def skipped(self) -> list[str]:
        return [r.tool for r in self.results if r.status == "skipped"]

    @property
    def failed(self) -> list[str]:
        return [r.tool for r in self.results if r.failed]

    @property
    def all_ok(self) -> bool:
        return all(r.ok for r in self.results)

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "total": self.total,
            "installed": self.installed,
            "skipped": self.skipped,
            "failed": self.failed,
            "results": [r.model_dump(mode="json") for r in self.results],
        }


def execute_phase(
    name: str,
    tools: Sequence[str],
    ctx: RunContext,
    *,
    lookup: Callable[[str], Installer] = get_installer,
) -> PhaseReport:
    """Install ``tools`` in order.

    Args:
        name: Phase name recorded on every journal line.
        tools: Tool ids in dependency order.
        ctx: The run context.
        lookup: Installer registry lookup (swappable in tests).

    Returns:
        PhaseReport with one result per tool.

    Raises:
        PhaseError: The first failing tool, with the partial report.
    """
    ctx.journal.set_phase(name)
    report = PhaseReport(phase=name)
    n = len(tools)

    for i, tool_id in enumerate(tools, 1):
        click.echo(f"\n  [{i}/{n}] {tool_id}")

        if ctx.state.is_completed(tool_id) and not ctx.force:
            ctx.journal.info(
                tool_id,
                "already completed, skipping",
                completed_at=ctx.state.completed_at(tool_id) or "",
            )
            report.results.append(InstallResult.skip(tool_id, "recorded in run state"))
            click.secho(f"  [✓] {tool_id} done", fg="green")
            continue

        ctx.journal.info(tool_id, f"installing: {tool_id}")

        if ctx.dry_run:
            ctx.journal.info(tool_id, f"DRY-RUN: would install {tool_id}")
            report.results.append(
                InstallResult.success(tool_id, "simulated", metadata={"dry_run": True}),
            )
            click.secho(f"  [✓] {tool_id} done", fg="green")
            continue

        installer = lookup(tool_id)
        start = time.monotonic()
        try:
            result = installer(ctx)
        except (InstallError, CommandError) as e:
            result = InstallResult.failure(tool_id, str(e))
            _fail(ctx, report, name, result, e, start)

        if result.failed:
            _fail(ctx, report, name, result, result.error or "installer reported failure", start)

        result.duration_ms = int((time.monotonic() - start) * 1000)
        report.results.append(result)

        ctx.state.mark_completed(tool_id)
        save_state(ctx.state, ctx.state_path)
        ctx.journal.info(tool_id, "done", duration_ms=str(result.duration_ms))
        click.secho(f"  [✓] {tool_id} done", fg="green")

    logger.info(
        "Phase %s: %d installed, %d skipped",
        name, len(report.installed), len(report.skipped),
    )
    return report


def _fail(
    ctx: RunContext,
    report: PhaseReport,
    phase: str,
    result: InstallResult,
    cause: BaseException | str,
    start: float,
) -> NoReturn:
    result.duration_ms = int((time.monotonic() - start) * 1000)
    report.results.append(result)
    ctx.journal.error(result.tool, f"failed: {cause}")
    if isinstance(cause, BaseException):
        raise PhaseError(phase, result.tool, cause, report=report) from cause
    raise PhaseError(phase, result.tool, cause, report=report)
