"""
Installer registry — tool id → installer procedure.

Contract: ``installer(ctx) -> InstallResult`` returning an ``ok`` or
``skipped`` result, and raising ``InstallError`` / ``CommandError`` on
failure.  Every installer is idempotent: it starts from a guard so a
repeat run converges instead of redoing work.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from onboard.core.errors import UnknownToolError
from onboard.core.models.tool import ToolId
from onboard.core.services.installers import private, public

if TYPE_CHECKING:
    from onboard.core.context import RunContext
    from onboard.core.models.result import InstallResult

Installer = Callable[["RunContext"], "InstallResult"]

INSTALLERS: dict[str, Installer] = {
    ToolId.XCODE: public.install_xcode,
    ToolId.HOMEBREW: public.install_homebrew,
    ToolId.PYENV: public.install_pyenv,
    ToolId.PYTHON313: public.install_python313,
    ToolId.PYTHON396: public.install_python396,
    ToolId.PYENV_VENV_NCPCLI: public.install_ncpcli_venv,
    ToolId.ITERM2: public.install_iterm2,
    ToolId.ALLPROXY: private.install_allproxy,
    ToolId.SPARTA_PKI: private.install_sparta_pki,
    ToolId.HOPS_CLI: private.install_hops_cli,
    ToolId.GNOC_HELPER: private.install_gnoc_helper,
    ToolId.STENCIL: private.install_stencil,
    ToolId.SILENCER: private.install_silencer,
    ToolId.NCPCLI: private.install_ncpcli,
    ToolId.JIT_PASS: private.install_jit_pass,
}


def get_installer(tool_id: str) -> Installer:
    """Look up the installer for *tool_id*.

    Raises:
        UnknownToolError: No installer is registered.
    """
    try:
        return INSTALLERS[str(tool_id)]
    except KeyError:
        raise UnknownToolError(str(tool_id)) from None
