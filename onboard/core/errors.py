"""
Error taxonomy — every failure the orchestrator can report.

All errors derive from ``OnboardError`` so the CLI can perform a single
"log and terminate" action at the top level.  Best-effort steps catch
``CommandError`` locally and downgrade it to a warning; nothing else is
swallowed.
"""

from __future__ import annotations


class OnboardError(Exception):
    """Base class for all orchestrator errors."""


class ValidationError(OnboardError):
    """Bad operator input (e.g. no valid ``--only`` tool ids)."""


class ConfigError(OnboardError):
    """Settings file is unreadable or invalid."""


class StateError(OnboardError):
    """Run state file is unreadable or invalid."""


class CatalogError(OnboardError):
    """The static tool catalog is malformed (unknown refs, cycles).

    This is a programming defect, detected once at startup.
    """


class UnknownToolError(OnboardError, KeyError):
    """A tool id that is not in the catalog."""

    def __init__(self, tool_id: str):
        super().__init__(tool_id)
        self.tool_id = tool_id

    def __str__(self) -> str:
        return f"unknown tool: {self.tool_id!r}"


class FatalError(OnboardError):
    """Environment problem that prevents any provisioning work."""


class PreflightError(OnboardError):
    """A preflight check failed before any installer ran."""


class CommandError(OnboardError):
    """An external command exited non-zero (or could not be started)."""

    def __init__(self, argv: list[str], returncode: int, output: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output
        cmd = " ".join(self.argv)
        message = f"{cmd}: exit status {returncode}"
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)


class InstallError(OnboardError):
    """An installer could not complete (missing artifact, bad input, …)."""


class PhaseError(OnboardError):
    """A phase aborted because one of its installers failed."""

    def __init__(
        self,
        phase: str,
        tool_id: str,
        cause: BaseException | str,
        report: object | None = None,
    ):
        self.phase = phase
        self.tool_id = tool_id
        self.cause = cause
        self.report = report
        super().__init__(f"{tool_id} failed: {cause}")


class GateCancelled(OnboardError):
    """The network transition gate was cancelled before the VPN came up."""
