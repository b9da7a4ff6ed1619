"""
Logging configuration — diagnostic logging for the CLI.

The operator-facing record of a run is the journal (run.log); this
module only configures stdlib ``logging`` for developers debugging the
orchestrator itself.  Called once by main.py.

Level precedence:
    --debug / -v  >  ONBOARD_LOG_LEVEL  >  WARNING

``ONBOARD_LOG_FILE`` adds a file handler at full detail.
"""

from __future__ import annotations

import logging
import os
import sys

_FMT_CONSOLE = "%(levelname)s %(name)s: %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT = "%H:%M:%S"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"

_NOISY_LOGGERS = ("urllib3",)


def resolve_level(verbose: bool = False, debug: bool = False) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return os.environ.get("ONBOARD_LOG_LEVEL", "WARNING")


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional log file; defaults to ``$ONBOARD_LOG_FILE``.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get("ONBOARD_LOG_FILE")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    if console_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_FMT_DEBUG, datefmt=_DATEFMT))
    else:
        console.setFormatter(logging.Formatter(_FMT_CONSOLE))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(console_level)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FMT_FILE))
        root.addHandler(fh)
        root.setLevel(logging.DEBUG)

    if console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric value (WARNING if unknown)."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
