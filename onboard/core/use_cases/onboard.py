"""
Onboard use case — the whole provisioning pipeline for one machine.

    preflight → shell blocks → select tools → resolve → classify
      → public phase → post-phase hooks
      → network gate → SSH key registration
      → private phase

Everything runs on the calling thread, strictly in order.  Any error
propagates to the caller (main.py), which journals it and exits.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

import click

from onboard.adapters.network import http_head
from onboard.adapters.prompt import Prompter
from onboard.core.context import RunContext
from onboard.core.data.catalog import GNOC_COMPANIONS, TOOL_CATALOG
from onboard.core.engine.executor import PhaseReport, execute_phase
from onboard.core.engine.gate import NetworkGate
from onboard.core.engine.phases import PRIVATE_PHASE, PUBLIC_PHASE, PhasePlan, classify
from onboard.core.engine.resolver import default_tools, extended_tools, resolve
from onboard.core.models.tool import ToolId
from onboard.core.services import preflight, shell_profile
from onboard.core.services.installers.public import ensure_sshpass, set_pyenv_global

logger = logging.getLogger(__name__)

GATE_PHASE = "phase2"

SELECTION_TITLE = "Onboard Tool Selection"
SELECTION_MESSAGE = (
    "Choose which tools to install. If gnoc_helper is selected, "
    "stencil/silencer/jit_pass are included automatically."
)


@dataclass
class OnboardResult:
    """What one pipeline run did."""

    plan: PhasePlan = field(default_factory=PhasePlan)
    public: PhaseReport | None = None
    private: PhaseReport | None = None
    gate_rounds: int = 0
    identity: str | None = None

    @property
    def nothing_selected(self) -> bool:
        return self.plan.total == 0

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "plan": self.plan.to_dict(),
            "public": self.public.to_dict() if self.public else None,
            "private": self.private.to_dict() if self.private else None,
            "gate_rounds": self.gate_rounds,
        }


def _section(title: str) -> None:
    click.echo(f"\n── {title} " + "─" * max(0, 60 - len(title)))


def select_tools(prompter: Prompter, *, gnoc: bool = False) -> list[str]:
    """Interactive selection, expanded with gnoc companions and resolved."""
    options = sorted(TOOL_CATALOG)
    defaults = default_tools()
    if gnoc:
        defaults += [t for t in extended_tools() if t not in defaults]

    chosen = [c for c in prompter.choose_many(SELECTION_TITLE, SELECTION_MESSAGE, options, defaults)
              if c in TOOL_CATALOG]
    if ToolId.GNOC_HELPER in chosen:
        chosen.extend(GNOC_COMPANIONS)
    return resolve(chosen)


def run_onboarding(
    ctx: RunContext,
    requested: Sequence[str] | None = None,
    *,
    gnoc: bool = False,
    rename_host: bool = False,
    gate: NetworkGate | None = None,
    probe=None,
    cancel: threading.Event | None = None,
) -> OnboardResult:
    """Provision the machine.

    Args:
        ctx: The run context.
        requested: Tool ids from ``--only`` (validated by the caller);
            None asks the operator interactively.
        gnoc: Pre-select gnoc_helper in the interactive selection.
        rename_host: Offer the (confirmed) host rename after preflight.
        gate: Network gate; defaults to one built from settings.
        probe: HTTP HEAD probe for the public-internet checks
            (defaults to ``http_head``).
        cancel: Set to abandon the network gate.

    Returns:
        OnboardResult describing the plan and both phase reports.
    """
    probe = probe or http_head
    result = OnboardResult()

    _section("Preflight")
    result.identity = preflight.run_preflight(ctx, probe)
    if rename_host:
        preflight.rename_host(ctx, result.identity)

    shell_profile.ensure_base_blocks(ctx)
    shell_profile.configure_sleep_aliases(ctx)

    if requested is not None:
        tools = resolve(requested)
    else:
        tools = select_tools(ctx.prompter, gnoc=gnoc)

    if not tools:
        click.echo("\nNo tools selected. Exiting.")
        return result

    result.plan = classify(tools)
    logger.info("Plan: %s", result.plan.to_dict())

    # ── Public phase ────────────────────────────────────────────
    _section("Phase 1: Public Internet (VPN OFF)")
    result.public = execute_phase(PUBLIC_PHASE, result.plan.public, ctx)
    set_pyenv_global(ctx)
    if ToolId.GNOC_HELPER in tools:
        ensure_sshpass(ctx)

    if not result.plan.private:
        click.echo("\n✓ Done. No Phase 3 tools selected.")
        ctx.journal.info("done", "completed successfully")
        return result

    # ── Network transition ──────────────────────────────────────
    ctx.journal.set_phase(GATE_PHASE)
    _section("Phase 2: Connect to VPN")
    gate = gate or NetworkGate.from_settings(ctx.settings)
    result.gate_rounds = gate.await_private_network(ctx, cancel)
    click.echo("  [✓] VPN confirmed")
    preflight.present_ssh_key(ctx)
    preflight.report_public_network_on_vpn(ctx, probe)

    # ── Private phase ───────────────────────────────────────────
    _section("Phase 3: Internal Tools (VPN ON)")
    result.private = execute_phase(PRIVATE_PHASE, result.plan.private, ctx)

    click.echo("\n✓ onboard complete. Open a new terminal or run: source ~/.zshrc")
    ctx.journal.info("done", "completed successfully")
    return result
