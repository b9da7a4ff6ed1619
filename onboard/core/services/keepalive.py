"""
Sudo keepalive — keep cached sudo credentials warm for the whole run.

Several installers need root (symlinks into /usr/local, the opensc
link), and a full run takes longer than the sudo timestamp timeout.
The operator authenticates once up front; a daemon thread then
re-validates every ``interval`` seconds with ``sudo -n -v``.

The thread is stopped through a ``threading.Event`` and joined with a
short timeout, so it never holds up process exit.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable

from onboard.core.errors import FatalError
from onboard.core.persistence.journal import Journal

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 60.0


def _authorize() -> bool:
    """Interactive ``sudo -v`` on the operator's terminal."""
    try:
        return subprocess.run(["sudo", "-v"]).returncode == 0
    except OSError as e:
        logger.error("sudo unavailable: %s", e)
        return False


def _refresh() -> bool:
    """Non-interactive ``sudo -n -v``; False once the timestamp is gone."""
    try:
        return subprocess.run(["sudo", "-n", "-v"], capture_output=True).returncode == 0
    except OSError:
        return False


class SudoKeepalive:
    """Background sudo re-validation, usable as a context manager::

        with SudoKeepalive(journal):
            run_everything()

    Args:
        journal: Tick failures are journaled as warnings.
        interval: Seconds between re-validations.
        authorize: Initial (interactive) authorization, returns success.
        refresh: One re-validation tick, returns success.
    """

    def __init__(
        self,
        journal: Journal,
        *,
        interval: float = DEFAULT_INTERVAL_S,
        authorize: Callable[[], bool] = _authorize,
        refresh: Callable[[], bool] = _refresh,
    ):
        self._journal = journal
        self._interval = interval
        self._authorize = authorize
        self._refresh = refresh
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Authorize, then start the refresh thread.

        Raises:
            FatalError: The operator could not be authorized.
        """
        if not self._authorize():
            raise FatalError("sudo auth failed")
        self._journal.info("sudo", "sudo credentials cached")

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="sudo-keepalive",
        )
        self._thread.start()
        logger.info("Sudo keepalive started (every %.0fs)", self._interval)

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            self.ticks += 1
            if not self._refresh():
                self.failures += 1
                self._journal.warn("sudo", "sudo keepalive tick failed")

    def __enter__(self) -> SudoKeepalive:
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
