"""
Network transition gate — block until the private network is up.

Between the public phase and the private phase the operator has to
switch networks (connect the VPN), which also cuts unrestricted public
access.  The gate asks them to do so, then polls every private endpoint
until all of them accept a TCP connection in the same round.

A round in which any endpoint fails never unblocks the gate, even if
every endpoint has succeeded in some earlier round.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence

import click

from onboard.adapters.network import tcp_probe
from onboard.core.config.settings import Settings
from onboard.core.context import RunContext
from onboard.core.errors import GateCancelled

logger = logging.getLogger(__name__)

VPN_PROMPT_TITLE = "Connect to VPN"
VPN_PROMPT_MESSAGE = (
    "Phase 1 complete.\n\n"
    "Please connect to the VPN now, then continue."
)


class NetworkGate:
    """Polls private endpoints until every one is reachable.

    Args:
        endpoints: ``host:port`` strings that must all connect.
        interval: Seconds between rounds.
        timeout: Per-endpoint connect timeout in seconds.
        probe: ``probe(endpoint, timeout) -> bool``.
        sleep: Used between rounds when no cancel event is given.
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        *,
        interval: float = 5.0,
        timeout: float = 3.0,
        probe: Callable[[str, float], bool] = tcp_probe,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not endpoints:
            raise ValueError("NetworkGate needs at least one endpoint")
        self.endpoints = list(endpoints)
        self.interval = interval
        self.timeout = timeout
        self._probe = probe
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> NetworkGate:
        return cls(
            settings.private_endpoints,
            interval=settings.gate_interval,
            timeout=settings.gate_timeout,
            **kwargs,
        )

    def probe_round(self) -> dict[str, bool]:
        """Probe every endpoint once; endpoint → reachable."""
        return {ep: self._probe(ep, self.timeout) for ep in self.endpoints}

    def await_private_network(
        self,
        ctx: RunContext,
        cancel: threading.Event | None = None,
    ) -> int:
        """Prompt the operator, then block until all endpoints connect.

        Returns:
            The number of probe rounds it took (0 in simulate-only mode).

        Raises:
            GateCancelled: ``cancel`` was set before the network came up.
        """
        ctx.prompter.alert(VPN_PROMPT_TITLE, VPN_PROMPT_MESSAGE)

        if ctx.dry_run:
            ctx.journal.info(
                "vpn_wait",
                "DRY-RUN: would poll internal hosts for VPN connectivity",
                endpoints=", ".join(self.endpoints),
            )
            return 0

        ctx.journal.info("vpn_wait", "polling for VPN connectivity")
        rounds = 0
        while True:
            if cancel is not None and cancel.is_set():
                raise GateCancelled("gave up waiting for the private network")

            rounds += 1
            status = self.probe_round()
            down = [ep for ep, up in status.items() if not up]
            if not down:
                ctx.journal.info("vpn_wait", "VPN connectivity confirmed", rounds=str(rounds))
                return rounds

            logger.debug("Round %d: unreachable %s", rounds, down)
            click.echo(f"  [~] Waiting for VPN ({down[0]})...")

            if cancel is not None:
                if cancel.wait(self.interval):
                    raise GateCancelled("gave up waiting for the private network")
            else:
                self._sleep(self.interval)
