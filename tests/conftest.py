"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from onboard.adapters.mock import MockRunner, ScriptedPrompter
from onboard.core.context import RunContext
from onboard.core.models.tool import Phase, ToolSpec
from onboard.core.persistence.journal import Journal


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """A temporary application directory (state + journal)."""
    path = tmp_path / "app"
    path.mkdir()
    return path


@pytest.fixture
def journal(app_dir: Path) -> Journal:
    return Journal(app_dir / "run.log", echo=False)


@pytest.fixture
def runner(journal: Journal) -> MockRunner:
    return MockRunner(journal)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def ctx(
    journal: Journal,
    runner: MockRunner,
    prompter: ScriptedPrompter,
    home: Path,
    app_dir: Path,
) -> RunContext:
    """A run context wired to test doubles."""
    return RunContext(
        journal=journal,
        runner=runner,
        prompter=prompter,
        state_path=app_dir / "state.json",
        home=home,
    )


def _make_catalog(*specs: tuple[str, tuple[str, ...], Phase]) -> dict[str, ToolSpec]:
    return {
        tool_id: ToolSpec(id=tool_id, name=tool_id, requires=requires, phase=phase)
        for tool_id, requires, phase in specs
    }


@pytest.fixture
def make_catalog():
    """Build a small catalog from (id, requires, phase) triples."""
    return _make_catalog


@pytest.fixture
def chain_catalog() -> dict[str, ToolSpec]:
    """D → C → B → A, with A and B public."""
    return _make_catalog(
        ("A", (), Phase.PUBLIC),
        ("B", ("A",), Phase.PUBLIC),
        ("C", ("B",), Phase.PRIVATE),
        ("D", ("C",), Phase.PRIVATE),
    )
