"""
State file persistence — atomic read/write for RunState.

State is stored as JSON in ``<app dir>/state.json``.  Writes are atomic
(write to temp file, then rename) so a crash mid-write cannot corrupt
the record of completed tools.

A missing file means "nothing completed yet".  A file that exists but
cannot be parsed is an error: silently starting fresh would re-run
every installer and lose the completion history.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from onboard.core.errors import StateError
from onboard.core.models.state import RunState

logger = logging.getLogger(__name__)

APP_DIR_NAME = ".onboard"
STATE_FILE = "state.json"
JOURNAL_FILE = "run.log"


def default_app_dir(home: Path | None = None) -> Path:
    """Per-user application directory (``$ONBOARD_HOME`` or ``~/.onboard``)."""
    override = os.environ.get("ONBOARD_HOME")
    if override:
        return Path(override).expanduser()
    return (home or Path.home()) / APP_DIR_NAME


def default_state_path(app_dir: Path) -> Path:
    return app_dir / STATE_FILE


def load_state(path: Path) -> RunState:
    """Load run state from a JSON file.

    Args:
        path: Path to the state JSON file.

    Returns:
        RunState. If the file doesn't exist, returns a fresh state.

    Raises:
        StateError: If the file exists but is unreadable or invalid.
    """
    if not path.is_file():
        logger.info("No state file at %s — starting fresh", path)
        return RunState()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StateError(f"Cannot read state file {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StateError(f"Invalid state file {path}: {e}") from e

    if not isinstance(data, dict):
        raise StateError(f"Invalid state file {path}: expected a JSON object")

    # Older files may carry null for the map.
    if data.get("completed_tools") is None:
        data["completed_tools"] = {}

    try:
        state = RunState.model_validate(data)
    except Exception as e:
        raise StateError(f"Invalid state file {path}: {e}") from e

    logger.debug("Loaded state from %s (%d completed)", path, len(state.completed_tools))
    return state


def save_state(state: RunState, path: Path) -> None:
    """Save run state to a JSON file (atomic write).

    Args:
        state: The state to save.
        path: Target path for the state file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = state.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".state_",
            suffix=".tmp",
        )
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.replace(path)
            logger.debug("State saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise StateError(f"Cannot write state file {path}: {e}") from e
