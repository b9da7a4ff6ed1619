"""
Command environment — absolute tool paths without sourcing ~/.zshrc.

Installers run long before the operator opens a new shell, so Homebrew
and pyenv are not on the inherited ``PATH`` yet.  Every command gets an
explicit environment built here.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

_SYSTEM_PATH = (
    "/opt/homebrew/bin",
    "/opt/homebrew/sbin",
    "/opt/local/bin",
    "/opt/local/sbin",
)
_TAIL_PATH = ("/usr/local/bin", "/usr/bin", "/bin", "/usr/sbin", "/sbin")


def _pyenv_root(home: Path) -> Path:
    return home / ".pyenv"


def base_env(home: Path, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for ordinary installer commands.

    Only identity variables are inherited from ``environ``; everything
    else is fixed so runs are reproducible regardless of the operator's
    shell setup.
    """
    environ = os.environ if environ is None else environ
    root = _pyenv_root(home)
    path = ":".join((*_SYSTEM_PATH, f"{root}/bin", f"{root}/shims", *_TAIL_PATH))
    return {
        "HOME": str(home),
        "USER": environ.get("USER", ""),
        "LOGNAME": environ.get("LOGNAME", ""),
        "PATH": path,
        "PYENV_ROOT": str(root),
        "HOMEBREW_PREFIX": "/opt/homebrew",
        "HOMEBREW_CELLAR": "/opt/homebrew/Cellar",
        "HOMEBREW_REPOSITORY": "/opt/homebrew",
        "TERM": "xterm-256color",
        "LANG": "en_US.UTF-8",
    }


def pyenv_env(
    home: Path,
    venv: str,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment with the pyenv virtualenv ``venv`` activated."""
    env = base_env(home, environ)
    root = _pyenv_root(home)
    venv_dir = root / "versions" / venv
    env["PYENV_VERSION"] = venv
    env["VIRTUAL_ENV"] = str(venv_dir)
    env["PATH"] = f"{venv_dir}/bin:{env['PATH']}"
    return env
