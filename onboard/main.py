"""
Workstation onboarding — CLI entrypoint.

Usage:
    onboard --list
    onboard --only=homebrew,pyenv --dry-run
    onboard --gnoc
    onboard --status
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from pathlib import Path

import click

from onboard import __version__
from onboard.adapters.prompt import TerminalPrompter
from onboard.adapters.shell.command import CommandRunner
from onboard.core.config.settings import load_settings
from onboard.core.context import RunContext
from onboard.core.data.catalog import TOOL_CATALOG
from onboard.core.engine.resolver import ensure_valid_catalog, parse_tool_ids
from onboard.core.errors import FatalError, OnboardError, PhaseError, ValidationError
from onboard.core.observability.logging_config import resolve_level, setup_logging
from onboard.core.persistence.journal import Journal
from onboard.core.persistence.state_file import (
    JOURNAL_FILE,
    default_app_dir,
    default_state_path,
    load_state,
    save_state,
)
from onboard.core.services.keepalive import SudoKeepalive
from onboard.core.use_cases.onboard import run_onboarding

logger = logging.getLogger(__name__)

BANNER = """
  ┌─────────────────────────────────────────────┐
  │   onboard — workstation provisioning        │
  └─────────────────────────────────────────────┘"""


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="onboard")
@click.option("--list", "list_tools", is_flag=True, help="List available tool IDs and exit.")
@click.option("--only", default=None, metavar="ID,ID,...", help="Install only these tools (plus dependencies).")
@click.option("--gnoc", is_flag=True, help="Pre-select the GNOC tool set.")
@click.option("--dry-run", is_flag=True, help="Print intended actions without making system changes.")
@click.option("--force", is_flag=True, help="Re-run installers for tools already recorded as completed.")
@click.option("--reset-state", is_flag=True, help="Forget completed tools before running.")
@click.option("--status", "show_status", is_flag=True, help="Show completed tools and exit.")
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Application directory (default: $ONBOARD_HOME or ~/.onboard).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: $ONBOARD_CONFIG or <state dir>/config.yml).",
)
@click.option("--rename-host", is_flag=True, help="Offer to rename this machine after the identity prompt.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    list_tools: bool,
    only: str | None,
    gnoc: bool,
    dry_run: bool,
    force: bool,
    reset_state: bool,
    show_status: bool,
    state_dir: Path | None,
    config_path: Path | None,
    rename_host: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Install and configure the standard workstation tool set."""
    setup_logging(level=resolve_level(verbose, debug))

    try:
        ensure_valid_catalog()
    except OnboardError as e:
        click.secho(f"[✗] FATAL: {e}", fg="red", err=True)
        sys.exit(1)

    if list_tools:
        click.echo("Available tool IDs (--only=id1,id2,...):")
        for name in sorted(TOOL_CATALOG):
            click.echo(f"  {name}")
        return

    app_dir = state_dir or default_app_dir()
    state_path = default_state_path(app_dir)

    if show_status:
        _print_status(state_path)
        return

    # Validate --only before anything touches the disk.
    try:
        requested = _parse_only(only)
    except ValidationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    journal = Journal(app_dir / JOURNAL_FILE)
    try:
        journal.open()
    except OnboardError as e:
        click.secho(f"[✗] FATAL: {e}", fg="red", err=True)
        sys.exit(1)

    cancel = threading.Event()
    previous_sigterm = signal.signal(signal.SIGTERM, _sigterm_handler(cancel))

    keepalive: SudoKeepalive | None = None
    try:
        settings = load_settings(config_path, app_dir)
        state = load_state(state_path)
        if reset_state:
            state.clear()
            if not dry_run:
                save_state(state, state_path)
            journal.info("state", "run state cleared")

        ctx = RunContext(
            journal=journal,
            runner=CommandRunner(journal, dry_run=dry_run),
            prompter=TerminalPrompter(),
            state_path=state_path,
            settings=settings,
            state=state,
            dry_run=dry_run,
            force=force,
        )
        ctx.runner.env = ctx.env()

        click.echo(BANNER)
        if dry_run:
            click.echo("\n[DRY-RUN] No system changes will be made.")
            journal.info("sudo", "dry-run mode: skipping sudo credential caching")
        else:
            click.echo("\n[sudo] onboard needs administrator privileges:")
            keepalive = SudoKeepalive(journal, interval=settings.keepalive_interval)
            keepalive.start()

        run_onboarding(
            ctx,
            requested,
            gnoc=gnoc,
            rename_host=rename_host,
            cancel=cancel,
        )
    except OnboardError as e:
        _fatal(journal, e)
    except KeyboardInterrupt:
        journal.write("WARN", "main", "interrupted by operator", echo=False)
        click.secho("\n[!] Interrupted.", fg="yellow", err=True)
        sys.exit(130)
    except Exception as e:
        logger.debug("unexpected error", exc_info=True)
        _fatal(journal, e)
    finally:
        if keepalive is not None:
            keepalive.stop()
        signal.signal(signal.SIGTERM, previous_sigterm)


def _sigterm_handler(cancel: threading.Event):
    """Release the network gate, then end the run through the fatal path."""

    def handler(signum, frame):
        cancel.set()
        raise FatalError("terminated by SIGTERM")

    return handler


def _fatal(journal: Journal, error: Exception) -> None:
    """The single log-and-terminate path for every run failure."""
    step = error.phase if isinstance(error, PhaseError) else (journal.phase or "main")
    journal.write("ERROR", step, str(error), echo=False)
    click.secho(f"[✗] FATAL: {error}", fg="red", err=True)
    sys.exit(1)


def _parse_only(raw: str | None) -> list[str] | None:
    """Known ids from ``--only``; None when the flag was not given."""
    if raw is None:
        return None
    requested, unknown = parse_tool_ids(raw)
    for tool_id in unknown:
        click.echo(f"  [!] unknown tool: {tool_id!r} (use --list)", err=True)
    if not requested:
        raise ValidationError("No valid tool IDs provided. Use --list to see available tools.")
    return requested


def _print_status(state_path: Path) -> None:
    try:
        state = load_state(state_path)
    except OnboardError as e:
        click.secho(f"[✗] FATAL: {e}", fg="red", err=True)
        sys.exit(1)

    if not state.completed_tools:
        click.echo("No tools completed yet.")
        return

    click.secho(f"Completed tools ({len(state.completed_tools)}):", bold=True)
    width = max(len(t) for t in state.completed_tools)
    for tool_id, at in sorted(state.completed_tools.items()):
        click.echo(f"  {tool_id:<{width}}  {at}")


if __name__ == "__main__":
    cli()
