"""
L0 Data — the tool catalog.

One entry per installable tool: display name, prerequisites (in the
order they should be resolved) and the network phase.  Everything here
is static; the dependency graph is validated once at startup by
``onboard.core.engine.resolver.validate_catalog``.
"""

from __future__ import annotations

from onboard.core.models.tool import Phase, ToolId, ToolSpec


def _spec(
    tool_id: ToolId,
    name: str,
    *requires: ToolId,
    phase: Phase = Phase.PRIVATE,
) -> tuple[str, ToolSpec]:
    return str(tool_id), ToolSpec(
        id=str(tool_id),
        name=name,
        requires=tuple(str(r) for r in requires),
        phase=phase,
    )


TOOL_CATALOG: dict[str, ToolSpec] = dict([
    # ── Public phase (VPN off) ───────────────────────────────────
    _spec(ToolId.XCODE, "Xcode Command Line Tools", phase=Phase.PUBLIC),
    _spec(ToolId.HOMEBREW, "Homebrew", ToolId.XCODE, phase=Phase.PUBLIC),
    _spec(ToolId.PYENV, "pyenv", ToolId.HOMEBREW, phase=Phase.PUBLIC),
    _spec(ToolId.PYTHON313, "Python 3.13", ToolId.PYENV, phase=Phase.PUBLIC),
    _spec(ToolId.PYTHON396, "Python 3.9.6", ToolId.PYENV, phase=Phase.PUBLIC),
    _spec(
        ToolId.PYENV_VENV_NCPCLI, "ncpcli virtualenv",
        ToolId.PYTHON396, phase=Phase.PUBLIC,
    ),
    _spec(ToolId.ITERM2, "iTerm2", phase=Phase.PUBLIC),

    # ── Private phase (VPN on) ───────────────────────────────────
    _spec(ToolId.ALLPROXY, "allproxy", ToolId.PYTHON313, ToolId.HOMEBREW),
    _spec(ToolId.SPARTA_PKI, "Sparta PKI trust roots"),
    _spec(ToolId.HOPS_CLI, "hops-cli", ToolId.PYTHON313, ToolId.SPARTA_PKI),
    _spec(
        ToolId.GNOC_HELPER, "gnoc-helper",
        ToolId.PYENV_VENV_NCPCLI, ToolId.ALLPROXY,
    ),
    _spec(ToolId.STENCIL, "stencil", ToolId.PYENV_VENV_NCPCLI),
    _spec(ToolId.SILENCER, "silencer"),
    _spec(ToolId.NCPCLI, "ncpcli", ToolId.PYENV_VENV_NCPCLI),
    _spec(ToolId.JIT_PASS, "gnoc-jit-pass"),
])


# Request used for the default (non-extended) selection.
DEFAULT_REQUEST: tuple[str, ...] = tuple(str(t) for t in (
    ToolId.ITERM2, ToolId.XCODE, ToolId.HOMEBREW,
    ToolId.PYENV, ToolId.PYTHON313, ToolId.PYTHON396, ToolId.PYENV_VENV_NCPCLI,
    ToolId.ALLPROXY, ToolId.SPARTA_PKI, ToolId.HOPS_CLI,
))

# Request used for the extended (``--gnoc``) selection.
EXTENDED_REQUEST: tuple[str, ...] = tuple(str(t) for t in (
    ToolId.GNOC_HELPER, ToolId.STENCIL, ToolId.SILENCER,
    ToolId.NCPCLI, ToolId.JIT_PASS,
))

# Picking gnoc_helper interactively pulls these in as well.
GNOC_COMPANIONS: tuple[str, ...] = tuple(str(t) for t in (
    ToolId.STENCIL, ToolId.SILENCER, ToolId.JIT_PASS,
))
