"""
Private-phase installers — need the VPN (internal git and package index).

Most of these clone or pull a repository from the internal git server
and then install from the checkout, so a re-run pulls and reinstalls
instead of failing on an existing directory.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from onboard.core.context import RunContext
from onboard.core.errors import CommandError, InstallError
from onboard.core.models.result import InstallResult
from onboard.core.models.tool import ToolId
from onboard.core.services import shell_profile
from onboard.core.services.installers.guards import (
    clone_or_pull,
    ensure_symlink,
    path_exists,
)

logger = logging.getLogger(__name__)

BIN_DIR = Path("/usr/local/bin")
BREW = Path("/opt/homebrew/bin/brew")

# Repositories on the internal git server, relative to Settings.git_base.
REPO_MISC_TOOLS = "~rralliso/misc-tools"
REPO_SPARTA_PKI = "secinf/sparta-pki"
REPO_GNOC_HELPER = "gnoc/gnoc-helper"
REPO_STENCIL = "nse/stencil"
REPO_STENCIL_GNOC = "gnoc/stencil-temp-gnoc"
REPO_SILENCER = "nse/silencer"
REPO_JIT_PASS = "gnoc/gnoc-jit-pass"

GNOC_RUNTIME_PACKAGES = ("rust", "cffi==1.16.0", "cryptography", "asyncssh", "pproxy", "pyyaml")


def _pip313(ctx: RunContext) -> Path:
    return ctx.python_version_dir(ctx.settings.python313_version) / "bin" / "pip"


def _venv_bin(ctx: RunContext, name: str) -> Path:
    return ctx.python_version_dir(ctx.settings.venv_name) / "bin" / name


def _purge_pip_cache(ctx: RunContext, step: str, pip: Path, env: dict[str, str]) -> None:
    try:
        ctx.runner.run(step, [pip, "cache", "purge"], env=env)
    except CommandError:
        ctx.journal.warn(step, "pip cache purge failed, continuing")


# ── Installers ──────────────────────────────────────────────────


def install_allproxy(ctx: RunContext) -> InstallResult:
    checkout = ctx.home / "misc-tools"
    clone_or_pull(ctx, "allproxy", ctx.settings.remote(REPO_MISC_TOOLS), checkout)
    ctx.runner.run(
        "allproxy",
        [_pip313(ctx), "install", "-e", checkout / "allproxy"],
        env=ctx.env(),
    )
    return InstallResult.success(ToolId.ALLPROXY, f"editable install from {checkout}")


def install_sparta_pki(ctx: RunContext) -> InstallResult:
    """Copy the SPARTA trust roots into ~/sparta_roots."""
    roots_dir = ctx.home / "sparta_roots"
    checkout = ctx.home / "sparta-pki"

    clone_or_pull(ctx, "sparta_pki", ctx.settings.remote(REPO_SPARTA_PKI), checkout)

    trustroots = checkout / "trustroots"
    if not trustroots.is_dir():
        raise InstallError(f"sparta-pki trustroots dir not found: {trustroots}")

    try:
        roots_dir.mkdir(mode=0o750, parents=True, exist_ok=True)
        copied = 0
        for entry in sorted(trustroots.iterdir()):
            if entry.is_file():
                shutil.copyfile(entry, roots_dir / entry.name)
                copied += 1
    except OSError as e:
        raise InstallError(f"copying trust roots: {e}") from e

    try:
        shutil.rmtree(checkout)
    except OSError as e:
        ctx.journal.warn("sparta_pki", f"could not remove checkout {checkout}: {e}")
    ctx.journal.info("sparta_pki", f"copied {copied} trust roots", dest=str(roots_dir))
    return InstallResult.success(ToolId.SPARTA_PKI, f"{copied} trust roots", metadata={"copied": copied})


def install_hops_cli(ctx: RunContext) -> InstallResult:
    pip = _pip313(ctx)
    hops = pip.with_name("hops")
    if path_exists(hops):
        ctx.journal.info("hops_cli", "hops-cli already installed")
        return InstallResult.skip(ToolId.HOPS_CLI, f"{hops} present")

    env = ctx.env()
    _purge_pip_cache(ctx, "hops_cli", pip, env)
    ctx.runner.run("hops_cli", [pip, "install", "--upgrade", "pip"], env=env)
    ctx.runner.run(
        "hops_cli",
        [pip, "install", "--default-timeout=100", "-U",
         "--index-url", ctx.settings.package_index, "hops-cli"],
        env=env,
    )
    # Newer setuptools breaks hops-cli at import time.
    ctx.runner.run(
        "hops_cli",
        [pip, "install", "--no-cache-dir", "--force-reinstall",
         f"setuptools=={ctx.settings.setuptools_pin}"],
        env=env,
    )
    return InstallResult.success(ToolId.HOPS_CLI)


def install_gnoc_helper(ctx: RunContext) -> InstallResult:
    if not ctx.identity:
        raise InstallError("gnoc_helper needs the operator identity (GUID)")

    checkout = ctx.home / "gnoc-helper"
    clone_or_pull(ctx, "gnoc_helper", ctx.settings.remote(REPO_GNOC_HELPER), checkout)
    shell_profile.ensure_gnoc_block(ctx, ctx.identity)

    links = (
        (checkout / "gnoc-helper.sh", BIN_DIR / "gnoc-helper"),
        (checkout / "scripts" / "rack-finder.sh", BIN_DIR / "rack-finder"),
        (checkout / "scripts" / "console-finder.sh", BIN_DIR / "console-finder"),
    )
    for source, link in links:
        ensure_symlink(ctx, "gnoc_helper", source, link)

    env = ctx.env()
    ctx.runner.run("gnoc_helper", [BIN_DIR / "gnoc-helper", "--setup"], env=env)
    ctx.runner.run("gnoc_helper", [_pip313(ctx), "install", *GNOC_RUNTIME_PACKAGES], env=env)
    return InstallResult.success(ToolId.GNOC_HELPER)


def install_stencil(ctx: RunContext) -> InstallResult:
    repos = (
        (ctx.home / "stencil", REPO_STENCIL),
        (ctx.home / "stencil-temp-gnoc", REPO_STENCIL_GNOC),
    )
    for checkout, repo in repos:
        clone_or_pull(ctx, "stencil", ctx.settings.remote(repo), checkout)

    venv_env = ctx.venv_env()
    ctx.runner.run(
        "stencil",
        [_venv_bin(ctx, "pip"), "install", f"{ctx.home / 'stencil'}/."],
        env=venv_env,
    )
    ensure_symlink(ctx, "stencil", _venv_bin(ctx, "stencil"), BIN_DIR / "stencil")
    ctx.runner.run("stencil", [BIN_DIR / "stencil", "init"], env=venv_env)
    return InstallResult.success(ToolId.STENCIL)


def install_silencer(ctx: RunContext) -> InstallResult:
    checkout = ctx.home / "silencer"
    clone_or_pull(ctx, "silencer", ctx.settings.remote(REPO_SILENCER), checkout)
    env = ctx.env()
    ctx.runner.run("silencer", ["make", "-C", checkout, "install"], env=env)
    ctx.runner.run("silencer", ["make", "-C", checkout, "link"], env=env)
    return InstallResult.success(ToolId.SILENCER)


def install_ncpcli(ctx: RunContext) -> InstallResult:
    if path_exists(_venv_bin(ctx, "ncpcli")):
        ctx.journal.info("ncpcli", "ncpcli already installed")
        return InstallResult.skip(ToolId.NCPCLI, "ncpcli present in venv")

    pip = _venv_bin(ctx, "pip")
    env = ctx.venv_env()

    _purge_pip_cache(ctx, "ncpcli", pip, env)
    ctx.runner.run("ncpcli", [pip, "install", "--upgrade", "pip"], env=env)

    # cryptography wheels for 3.9 build against openssl@1.1
    prefix = ctx.runner.query([BREW, "--prefix", "openssl@1.1"], env=env) or ""
    build_env = dict(env)
    build_env["LDFLAGS"] = f"-L{prefix}/lib"
    build_env["CFLAGS"] = f"-I{prefix}/include"

    ctx.runner.run(
        "ncpcli",
        [pip, "install",
         "--index-url", ctx.settings.package_index,
         "--trusted-host", ctx.settings.package_index_host,
         "ncpcli"],
        env=build_env,
    )
    ctx.runner.run("ncpcli", [_venv_bin(ctx, "ncpcli"), "--rebuild-config"], env=build_env)
    return InstallResult.success(ToolId.NCPCLI)


def install_jit_pass(ctx: RunContext) -> InstallResult:
    checkout = ctx.home / "gnoc-jit-pass"
    clone_or_pull(ctx, "jit_pass", ctx.settings.remote(REPO_JIT_PASS), checkout)
    ctx.runner.run("jit_pass", [checkout / "wrapper.sh"], env=ctx.env())
    return InstallResult.success(ToolId.JIT_PASS)
