"""
Preflight — checks and inputs collected before any installer runs.

    1. Public internet must be reachable (the VPN has to be off).
    2. An SSH key must exist; one is generated when missing.
    3. The operator identity (GUID) is required.

The SSH public key is cached on the run context and shown to the
operator after the network gate, once the internal git server is
reachable and the key can be registered there.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from onboard.adapters.network import http_head
from onboard.core.context import RunContext
from onboard.core.errors import CommandError, PreflightError
from onboard.core.services.installers.guards import path_exists

logger = logging.getLogger(__name__)

SSH_KEY_CANDIDATES = ("id_ed25519.pub", "id_rsa.pub")
DRY_RUN_KEY = "<dry-run: ssh public key would be generated here>"
BITBUCKET_KEYS_URL = "https://bitbucket.oci.oraclecorp.com/plugins/servlet/ssh/account/keys"

HeadProbe = Callable[[str, float], dict]


# ── Public network ──────────────────────────────────────────────


def public_internet_reachable(ctx: RunContext, probe: HeadProbe = http_head) -> bool:
    result = probe(ctx.settings.public_check_url, ctx.settings.public_check_timeout)
    if not result.get("reachable"):
        logger.debug("public check failed: %s", result.get("error"))
        return False
    return int(result.get("status", 200)) < 400


def check_public_network(ctx: RunContext, probe: HeadProbe = http_head) -> None:
    """Raises ``PreflightError`` unless the public check URL answers."""
    ctx.journal.info("net_check", "checking public internet reachability")
    if not public_internet_reachable(ctx, probe):
        raise PreflightError(
            "public internet unreachable — ensure VPN is OFF before running Phase 1"
        )
    ctx.journal.info("net_check", "public internet reachable")


# ── SSH key ─────────────────────────────────────────────────────


def ensure_ssh_key(ctx: RunContext) -> str:
    """Find (or generate) the operator's SSH key and cache the public half."""
    ssh_dir = ctx.home / ".ssh"
    pub_path = next(
        (ssh_dir / name for name in SSH_KEY_CANDIDATES if path_exists(ssh_dir / name)),
        None,
    )

    if pub_path is None:
        if ctx.dry_run:
            ctx.journal.info("ssh_key", "DRY-RUN: no SSH key found; would generate ed25519 key")
            ctx.ssh_public_key = DRY_RUN_KEY
            return DRY_RUN_KEY

        ctx.journal.info("ssh_key", "no SSH key found, generating ed25519 key")
        email = ctx.prompter.prompt(
            "SSH Key Setup",
            "Enter your email for SSH key generation:",
            "firstname.lastname@oracle.com",
        )
        if not email:
            raise PreflightError("SSH key generation cancelled")

        key_path = ssh_dir / "id_ed25519"
        try:
            ssh_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            ctx.runner.run(
                "ssh_key",
                ["ssh-keygen", "-t", "ed25519", "-C", email, "-f", key_path, "-N", ""],
            )
        except (OSError, CommandError) as e:
            raise PreflightError(f"ssh-keygen failed: {e}") from e
        ctx.journal.info("ssh_key", "SSH key generated", path=str(key_path))
        pub_path = key_path.with_suffix(".pub")

    try:
        key = pub_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise PreflightError(f"could not read public key at {pub_path}: {e}") from e

    ctx.ssh_public_key = key
    ctx.journal.info(
        "ssh_key",
        "SSH public key ready; Bitbucket add step deferred until VPN is connected",
    )
    return key


# ── Identity ────────────────────────────────────────────────────


def collect_identity(ctx: RunContext) -> str:
    answer = ctx.prompter.prompt("Identity", "Enter your Oracle GUID (e.g. jsmith):")
    guid = (answer or "").strip()
    if not guid:
        raise PreflightError("oracle GUID is required")

    ctx.identity = guid
    ctx.journal.info("identity", "oracle GUID entered", guid=guid)
    return guid


def run_preflight(ctx: RunContext, probe: HeadProbe = http_head) -> str:
    """All preflight steps in order; returns the operator identity."""
    ctx.journal.set_phase("preflight")
    check_public_network(ctx, probe)
    ensure_ssh_key(ctx)
    return collect_identity(ctx)


# ── After the network gate ──────────────────────────────────────


def present_ssh_key(ctx: RunContext) -> None:
    """Ask the operator to register the cached key with the git server.

    Raises:
        PreflightError: The operator says the key has not been added.
    """
    if not ctx.ssh_public_key:
        ctx.journal.warn("ssh_key", "no cached SSH key found from preflight; skipping Bitbucket prompt")
        return
    if ctx.dry_run:
        ctx.journal.info("ssh_key", "DRY-RUN: would prompt user to add SSH key in Bitbucket now")
        return

    ctx.journal.info("ssh_key", "presenting SSH public key for Bitbucket add")
    ctx.prompter.alert(
        "SSH Public Key",
        f"Your SSH public key — add this to Bitbucket:\n\n{ctx.ssh_public_key}\n\n"
        f"Manage keys at {BITBUCKET_KEYS_URL}",
    )
    if not ctx.prompter.confirm("SSH Key", "Have you added the SSH key to Bitbucket?"):
        raise PreflightError("SSH key not added to Bitbucket — cannot continue")


def report_public_network_on_vpn(ctx: RunContext, probe: HeadProbe = http_head) -> None:
    """Informational: split-tunnel VPNs keep public access, full ones don't."""
    if public_internet_reachable(ctx, probe):
        ctx.journal.info("net_check", "public internet reachable while on VPN")
    else:
        ctx.journal.warn(
            "net_check",
            "public internet currently unreachable while on VPN "
            "(this can be expected before full VPN)",
        )


# ── Host rename (opt-in) ────────────────────────────────────────


def host_name_for(identity: str) -> str:
    """A LocalHostName-safe machine name derived from the identity."""
    name = re.sub(r"[^A-Za-z0-9-]+", "-", identity).strip("-").lower()
    return f"{name}-mac" if name else ""


def rename_host(ctx: RunContext, identity: str) -> bool:
    """Set ComputerName/LocalHostName after an explicit confirmation.

    Only the machine names change: no account rename and no logout.

    Returns:
        True if the names were set.
    """
    name = host_name_for(identity)
    if not name:
        ctx.journal.warn("identity", "identity yields no usable host name; rename skipped")
        return False

    if not ctx.prompter.confirm(
        "Rename This Mac",
        f"Set this machine's ComputerName and LocalHostName to '{name}'?",
        default=False,
    ):
        ctx.journal.info("identity", "host rename declined")
        return False

    if ctx.dry_run:
        ctx.journal.info("identity", f"DRY-RUN: would rename host to {name}")
        return False

    for key in ("ComputerName", "LocalHostName"):
        ctx.runner.sudo("identity", ["scutil", "--set", key, name])
    ctx.journal.info("identity", f"host renamed to {name}")
    return True
