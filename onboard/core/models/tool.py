"""
Tool models — the static description of one installable unit.

A tool is identified by a stable string key (``ToolId``), carries its
prerequisites and the network phase it needs.  The installer procedure
is looked up by id in the installer registry, so the model itself stays
pure data.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ToolId(StrEnum):
    """Stable identifiers of every tool in the catalog."""

    XCODE = "xcode"
    HOMEBREW = "homebrew"
    PYENV = "pyenv"
    PYTHON313 = "python313"
    PYTHON396 = "python396"
    PYENV_VENV_NCPCLI = "pyenv_venv_ncpcli"
    ITERM2 = "iterm2"
    ALLPROXY = "allproxy"
    SPARTA_PKI = "sparta_pki"
    HOPS_CLI = "hops_cli"
    GNOC_HELPER = "gnoc_helper"
    STENCIL = "stencil"
    SILENCER = "silencer"
    NCPCLI = "ncpcli"
    JIT_PASS = "jit_pass"


class Phase(StrEnum):
    """Execution window, distinguished by the network the tool needs."""

    PUBLIC = "public"    # unrestricted internet, VPN off
    PRIVATE = "private"  # internal hosts, VPN on


class ToolSpec(BaseModel):
    """Catalog entry for a single tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    requires: tuple[str, ...] = ()
    phase: Phase = Phase.PRIVATE

    @property
    def is_public(self) -> bool:
        return self.phase == Phase.PUBLIC
