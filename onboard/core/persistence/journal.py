"""
Run journal — append-only structured log of a provisioning run.

Every record is one line of JSON in ``<app dir>/run.log``::

    {"ts": "2026-03-02T10:14:55Z", "level": "INFO", "phase": "phase1",
     "step": "homebrew", "msg": "command ok", "fields": {"cmd": "..."}}

The journal is never rewritten, only appended.  Writes are serialized
with a lock because the sudo keepalive thread logs from the background.

Each record is also echoed to the operator with a severity marker:
``[→]`` info, ``[!]`` warning, ``[✗]`` error.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

import click
from pydantic import BaseModel, Field

from onboard.core.errors import FatalError

logger = logging.getLogger(__name__)

Level = Literal["INFO", "WARN", "ERROR"]

_MARKERS: dict[str, str] = {"INFO": "[→]", "WARN": "[!]", "ERROR": "[✗]"}
_LOG_LEVELS: dict[str, int] = {
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _utc_stamp() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class JournalRecord(BaseModel):
    """A single journal line."""

    ts: str = Field(default_factory=_utc_stamp)
    level: Level = "INFO"
    phase: str = ""
    step: str = ""
    msg: str = ""
    fields: dict[str, str] | None = None


class Journal:
    """Append-only NDJSON writer with console echo.

    Args:
        path: Journal file. ``None`` keeps records in memory only
            (used before the app dir exists and in tests).
        echo: Print each record to the terminal.
    """

    def __init__(self, path: Path | None = None, *, echo: bool = True):
        self._path = path
        self._echo = echo
        self._phase = ""
        self._lock = threading.Lock()
        self._records: list[JournalRecord] = []

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def phase(self) -> str:
        return self._phase

    @property
    def records(self) -> list[JournalRecord]:
        """Records written by this instance (oldest first)."""
        with self._lock:
            return list(self._records)

    def open(self) -> None:
        """Create the journal file, or fail before any work starts."""
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8"):
                pass
        except OSError as e:
            raise FatalError(f"failed to init journal at {self._path}: {e}") from e

    def set_phase(self, phase: str) -> None:
        with self._lock:
            self._phase = phase

    # ── Writers ─────────────────────────────────────────────────

    def write(
        self,
        level: Level,
        step: str,
        msg: str,
        fields: dict[str, str] | None = None,
        *,
        echo: bool | None = None,
    ) -> JournalRecord:
        with self._lock:
            record = JournalRecord(
                level=level,
                phase=self._phase,
                step=step,
                msg=msg,
                fields={k: str(v) for k, v in fields.items()} if fields else None,
            )
            self._records.append(record)
            if self._path is not None:
                line = json.dumps(record.model_dump(exclude_none=True), ensure_ascii=False)
                try:
                    with self._path.open("a", encoding="utf-8") as f:
                        f.write(line + "\n")
                except OSError as e:
                    logger.error("Failed to write journal record: %s", e)

        logger.log(_LOG_LEVELS[level], "%s/%s: %s", record.phase or "-", step, msg)
        if (self._echo if echo is None else echo):
            click.echo(f"  {_MARKERS[level]} {msg}", err=(level == "ERROR"))
        return record

    def info(self, step: str, msg: str, **fields: str) -> JournalRecord:
        return self.write("INFO", step, msg, fields or None)

    def warn(self, step: str, msg: str, **fields: str) -> JournalRecord:
        return self.write("WARN", step, msg, fields or None)

    def error(self, step: str, msg: str, **fields: str) -> JournalRecord:
        return self.write("ERROR", step, msg, fields or None)

    # ── Readers ─────────────────────────────────────────────────

    def read_all(self) -> list[JournalRecord]:
        """Read every record from the journal file, skipping corrupt lines."""
        if self._path is None or not self._path.is_file():
            return []

        entries: list[JournalRecord] = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(JournalRecord.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValueError) as e:
                    logger.warning("Skipping corrupt journal line %d: %s", line_num, e)
        return entries
