"""
Run context — everything one provisioning run carries around.

A single ``RunContext`` is built by main.py and passed explicitly to the
engine, the gate, preflight and every installer.  There are no module
level globals: simulate-only mode, the journal, run state and the cached
operator identity all live here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from onboard.adapters.prompt import Prompter
from onboard.adapters.shell.command import CommandRunner
from onboard.adapters.shell.environment import base_env, pyenv_env
from onboard.core.config.settings import Settings
from onboard.core.models.state import RunState
from onboard.core.persistence.journal import Journal


@dataclass
class RunContext:
    """Per-run state threaded through the pipeline."""

    journal: Journal
    runner: CommandRunner
    prompter: Prompter
    state_path: Path
    home: Path = field(default_factory=Path.home)
    settings: Settings = field(default_factory=Settings)
    state: RunState = field(default_factory=RunState)
    dry_run: bool = False
    force: bool = False

    # Cached for the lifetime of the process, never persisted.
    identity: str | None = None
    ssh_public_key: str | None = None

    # ── Paths ───────────────────────────────────────────────────

    @property
    def zshrc(self) -> Path:
        return self.home / ".zshrc"

    @property
    def pyenv_root(self) -> Path:
        return self.home / ".pyenv"

    def python_version_dir(self, version: str) -> Path:
        return self.pyenv_root / "versions" / version

    def python_bin(self, version: str) -> Path:
        """Interpreter of a pyenv-managed version (or virtualenv)."""
        return self.python_version_dir(version) / "bin" / "python"

    # ── Command environments ────────────────────────────────────

    def env(self) -> dict[str, str]:
        return base_env(self.home)

    def venv_env(self) -> dict[str, str]:
        return pyenv_env(self.home, self.settings.venv_name)
