"""
Public-phase installers — need unrestricted internet, VPN off.

Xcode command line tools, Homebrew and its packages, pyenv with the two
Python versions and the ncpcli virtualenv, and iTerm2.  Also holds the
two post-phase hooks (pyenv global versions, sshpass for gnoc-helper).
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from onboard.core.context import RunContext
from onboard.core.errors import CommandError, InstallError
from onboard.core.models.result import InstallResult
from onboard.core.models.tool import ToolId
from onboard.core.services import shell_profile
from onboard.core.services.installers.guards import path_exists, require_any

logger = logging.getLogger(__name__)

# ── Locations ───────────────────────────────────────────────────

ITERM_APP = Path("/Applications/iTerm.app")
ITERM_URL = "https://iterm2.com/downloads/stable/latest"
ITERM_ZIP = Path("/tmp/iterm2.zip")

CLT_DIR = Path("/Library/Developer/CommandLineTools")

BREW = Path("/opt/homebrew/bin/brew")
BREW_INSTALL = (
    "NONINTERACTIVE=1 curl -fsSL "
    "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh | bash"
)
BREW_PACKAGES = ("openssl", "yubico-piv-tool", "jq", "pyenv", "pyenv-virtualenv")

OPENSC_LIB = Path("/Library/OpenSC/lib/opensc-pkcs11.so")
OPENSC_LINK = Path("/usr/local/lib/opensc-pkcs11.so")

SSHPASS_BINS = [Path("/opt/homebrew/bin/sshpass"), Path("/usr/local/bin/sshpass")]
SSHPASS_TAP = "hudochenkov/sshpass/sshpass"

_ITERM_PLIST = """\
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
\t<key>PromptOnQuit</key>
\t<false/>
\t<key>SUEnableAutomaticChecks</key>
\t<true/>
\t<key>OpenTmuxWindowsIn</key>
\t<integer>2</integer>
</dict>
</plist>
"""


def _pyenv(ctx: RunContext) -> str:
    return str(ctx.pyenv_root / "bin" / "pyenv")


# ── Installers ──────────────────────────────────────────────────


def install_iterm2(ctx: RunContext) -> InstallResult:
    if path_exists(ITERM_APP):
        ctx.journal.info("iterm2", "already installed, skipping")
        return InstallResult.skip(ToolId.ITERM2, f"{ITERM_APP} present")

    env = ctx.env()
    ctx.runner.run("iterm2", ["curl", "-L", "-o", ITERM_ZIP, ITERM_URL], env=env)
    ctx.runner.run("iterm2", ["unzip", "-o", ITERM_ZIP, "-d", "/Applications"], env=env)
    try:
        ITERM_ZIP.unlink(missing_ok=True)
    except OSError as e:
        ctx.journal.warn("iterm2", f"could not remove {ITERM_ZIP}: {e}")

    plist = ctx.home / "Library" / "Preferences" / "com.googlecode.iterm2.plist"
    try:
        plist.parent.mkdir(parents=True, exist_ok=True)
        plist.write_text(_ITERM_PLIST, encoding="utf-8")
    except OSError as e:
        raise InstallError(f"writing iterm2 plist: {e}") from e

    # Makes cfprefsd pick up the new plist.
    ctx.runner.run("iterm2", ["defaults", "read", "com.googlecode.iterm2"], env=env, check=False)
    return InstallResult.success(ToolId.ITERM2, "installed to /Applications")


def install_xcode(ctx: RunContext) -> InstallResult:
    if path_exists(CLT_DIR):
        ctx.journal.info("xcode", "Xcode CLI tools already installed")
        return InstallResult.skip(ToolId.XCODE, f"{CLT_DIR} present")

    click.echo("  [→] Installing Xcode Command Line Tools (a system dialog will appear)...")
    # Non-zero when the installer dialog is already open; the operator confirms below.
    ctx.runner.run_interactive("xcode", ["xcode-select", "--install"], check=False)

    if not ctx.prompter.confirm(
        "Xcode CLI Tools",
        "Click OK once the Xcode Command Line Tools installation is complete.",
    ):
        raise InstallError("xcode CLI tools installation not confirmed")
    return InstallResult.success(ToolId.XCODE)


def install_homebrew(ctx: RunContext) -> InstallResult:
    if path_exists(BREW):
        ctx.journal.info("homebrew", "Homebrew already installed")
        message = "brew present; packages verified"
    else:
        click.echo("  [→] Installing Homebrew...")
        ctx.runner.shell("homebrew", BREW_INSTALL, env=ctx.env())
        message = "installed"

    ensure_brew_packages(ctx)
    return InstallResult.success(ToolId.HOMEBREW, message)


def ensure_brew_packages(ctx: RunContext) -> None:
    env = ctx.env()
    for pkg in BREW_PACKAGES:
        try:
            ctx.runner.run("homebrew", [BREW, "install", pkg], env=env)
        except CommandError as e:
            raise InstallError(f"brew install {pkg}: {e}") from e

    try:
        ctx.runner.run("homebrew", [BREW, "install", "--cask", "opensc"], env=env)
    except CommandError:
        ctx.journal.warn("homebrew", "opensc cask install failed (may already be installed)")

    ensure_opensc_link(ctx)


def ensure_opensc_link(ctx: RunContext) -> None:
    if not path_exists(OPENSC_LIB):
        ctx.journal.warn("opensc", "source opensc-pkcs11.so not found, skipping symlink")
        return
    if path_exists(OPENSC_LINK):
        ctx.journal.info("opensc", "symlink already exists")
        return
    ctx.runner.sudo("opensc", ["mkdir", "-pv", OPENSC_LINK.parent])
    ctx.runner.sudo("opensc", ["ln", "-v", OPENSC_LIB, OPENSC_LINK])


def install_pyenv(ctx: RunContext) -> InstallResult:
    # The binary comes from Homebrew; only the shell hook is ours.
    if shell_profile.ensure_pyenv_block(ctx):
        return InstallResult.success(ToolId.PYENV, "shell block written")
    return InstallResult.skip(ToolId.PYENV, "shell block present")


def _install_python(ctx: RunContext, tool: ToolId, version: str) -> InstallResult:
    version_dir = ctx.python_version_dir(version)
    if path_exists(version_dir):
        ctx.journal.info("pyenv", f"Python {version} already installed")
        return InstallResult.skip(tool, f"{version_dir} present")

    ctx.runner.run("pyenv", [_pyenv(ctx), "install", version], env=ctx.env())
    return InstallResult.success(tool, f"Python {version}")


def install_python313(ctx: RunContext) -> InstallResult:
    return _install_python(ctx, ToolId.PYTHON313, ctx.settings.python313_version)


def install_python396(ctx: RunContext) -> InstallResult:
    return _install_python(ctx, ToolId.PYTHON396, ctx.settings.python396_version)


def install_ncpcli_venv(ctx: RunContext) -> InstallResult:
    venv = ctx.settings.venv_name
    venv_dir = ctx.python_version_dir(venv)
    if path_exists(venv_dir):
        ctx.journal.info("pyenv", f"virtualenv {venv} already exists")
        return InstallResult.skip(ToolId.PYENV_VENV_NCPCLI, f"{venv_dir} present")

    ctx.runner.run(
        "pyenv_venv",
        [_pyenv(ctx), "virtualenv", ctx.settings.python396_version, venv],
        env=ctx.env(),
    )
    return InstallResult.success(ToolId.PYENV_VENV_NCPCLI, f"virtualenv {venv}")


# ── Post-phase hooks ────────────────────────────────────────────


def set_pyenv_global(ctx: RunContext) -> None:
    """Make the 3.13 interpreter and the ncpcli venv the global default.

    Best effort: a failure is journaled as a warning.
    """
    versions = [ctx.settings.python313_version, ctx.settings.venv_name]
    if ctx.dry_run:
        ctx.journal.info("pyenv_global", f"DRY-RUN: would set pyenv global {' '.join(versions)}")
        return
    try:
        ctx.runner.run("pyenv_global", [_pyenv(ctx), "global", *versions], env=ctx.env())
    except CommandError as e:
        ctx.journal.warn("pyenv_global", f"pyenv global set failed: {e}")


def ensure_sshpass(ctx: RunContext) -> None:
    """Install sshpass (needed by gnoc-helper).

    Raises:
        InstallError: Homebrew is missing, both formulas failed, or the
            binary is absent after a "successful" install.
    """
    click.echo("\n  [→] Ensuring sshpass is installed (required for gnoc-helper)...")
    if ctx.dry_run:
        ctx.journal.info("sshpass", "DRY-RUN: would install/verify sshpass")
        return

    if any(path_exists(p) for p in SSHPASS_BINS):
        ctx.journal.info("sshpass", "sshpass already installed")
        return

    if not path_exists(BREW):
        raise InstallError(f"homebrew not found at {BREW}; required for sshpass install")

    env = ctx.env()
    try:
        ctx.runner.run("sshpass", [BREW, "install", SSHPASS_TAP], env=env)
    except CommandError as tap_err:
        try:
            ctx.runner.run("sshpass", [BREW, "install", "sshpass"], env=env)
        except CommandError as fallback_err:
            raise InstallError(
                f"sshpass install failed: tap formula error: {tap_err}; "
                f"fallback error: {fallback_err}"
            ) from fallback_err

    require_any(SSHPASS_BINS, "sshpass binary")
