"""
Shell startup blocks — guarded edits to ~/.zshrc.

Each block is wrapped in ``# BEGIN: <name>`` / ``# END: <name>`` lines;
the BEGIN line is the guard marker, so a block is written at most once
no matter how many times onboarding runs.
"""

from __future__ import annotations

import logging
import re

import click

from onboard.core.context import RunContext
from onboard.core.services.installers.guards import append_guarded_block

logger = logging.getLogger(__name__)

HOMEBREW_MARKER = "# BEGIN: Homebrew"
PYENV_MARKER = "# BEGIN: pyenv"
SLEEP_MARKER = "# BEGIN: Sleep Controls"
GNOC_MARKER = "# BEGIN: GNOC Temp Help"

HOMEBREW_BLOCK = """\
# BEGIN: Homebrew
eval "$(/opt/homebrew/bin/brew shellenv)"
# END: Homebrew"""

PYENV_BLOCK = """\
# BEGIN: pyenv
export PYENV_ROOT="$HOME/.pyenv"
export PATH="$PYENV_ROOT/bin:$PATH"
eval "$(pyenv init -)"
eval "$(pyenv virtualenv-init -)"
# END: pyenv"""

_SLEEP_TEMPLATE = """\
# BEGIN: Sleep Controls
alias ns='sudo pmset -a sleep 0; sudo pmset -a hibernatemode 0; sudo pmset -a disablesleep 1;'
alias ys='sudo pmset -a sleep {sleep}; sudo pmset -a hibernatemode {hibernate}; sudo pmset -a disablesleep {disablesleep};'
# END: Sleep Controls"""

_GNOC_TEMPLATE = """\
# BEGIN: GNOC Temp Help
export OCI_USER="{identity}"
export AUTONET_PLANS_PATH="/path/to/plans"       # Ask your trainer
export GNOC_TEMPLATES_PATH="/path/to/templates"  # Ask your trainer

alias jit-pass="$HOME/gnoc-jit-pass/wrapper.sh"

rekey() {{
    ssh-add -D
    for key in ~/.ssh/id_*; do
        [[ "$key" == *.pub ]] && continue
        if grep -q "PRIVATE KEY" "$key"; then
            ssh-add "$key" >/dev/null 2>&1 && echo "Loaded $key"
        fi
    done
    ssh-add -s /usr/local/lib/opensc-pkcs11.so 2>/dev/null
}}
# END: GNOC Temp Help"""

# Fallbacks when `pmset -g custom` is unavailable: macOS defaults.
SLEEP_DEFAULTS = {"sleep": "10", "hibernatemode": "3", "disablesleep": "0"}


def ensure_base_blocks(ctx: RunContext) -> None:
    """Homebrew and pyenv initialization."""
    append_guarded_block(ctx, ctx.zshrc, HOMEBREW_MARKER, HOMEBREW_BLOCK)
    append_guarded_block(ctx, ctx.zshrc, PYENV_MARKER, PYENV_BLOCK)


def ensure_pyenv_block(ctx: RunContext) -> bool:
    return append_guarded_block(ctx, ctx.zshrc, PYENV_MARKER, PYENV_BLOCK)


def pmset_value(output: str | None, key: str, fallback: str) -> str:
    """First value of *key* in ``pmset -g custom`` output."""
    if not output:
        return fallback
    match = re.search(rf"^\s*{re.escape(key)}\s+(\S+)", output, re.MULTILINE)
    if not match:
        return fallback
    return match.group(1).strip() or fallback


def sleep_block(pmset_output: str | None) -> str:
    """``ns``/``ys`` aliases; ``ys`` restores the current power settings."""
    values = {k: pmset_value(pmset_output, k, v) for k, v in SLEEP_DEFAULTS.items()}
    return _SLEEP_TEMPLATE.format(
        sleep=values["sleep"],
        hibernate=values["hibernatemode"],
        disablesleep=values["disablesleep"],
    )


def configure_sleep_aliases(ctx: RunContext) -> bool:
    output = ctx.runner.query(["pmset", "-g", "custom"])
    block = sleep_block(output)

    click.echo("\n── Sleep Settings ─────────────────────────────────────────────")
    current = {k: pmset_value(output, k, v) for k, v in SLEEP_DEFAULTS.items()}
    click.echo(
        "  current pmset values: "
        + " ".join(f"{k}={v}" for k, v in current.items())
    )
    return append_guarded_block(ctx, ctx.zshrc, SLEEP_MARKER, block)


def gnoc_block(identity: str) -> str:
    return _GNOC_TEMPLATE.format(identity=identity)


def ensure_gnoc_block(ctx: RunContext, identity: str) -> bool:
    """Exports the operator identity for the GNOC helper scripts."""
    return append_guarded_block(ctx, ctx.zshrc, GNOC_MARKER, gnoc_block(identity))
