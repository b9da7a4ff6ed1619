"""
Network probes — read-only reachability checks.

Two kinds of probe are needed:

- ``http_head`` proves unrestricted public internet (preflight).
- ``tcp_probe`` proves a private endpoint accepts connections (VPN gate).
"""

from __future__ import annotations

import logging
import socket
import time
import urllib.request

logger = logging.getLogger(__name__)

_USER_AGENT = "workstation-onboard/1.0"


def split_endpoint(endpoint: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts.

    Raises:
        ValueError: Missing or non-numeric port.
    """
    host, sep, port = endpoint.rpartition(":")
    if not sep or not host:
        raise ValueError(f"endpoint must be host:port, got {endpoint!r}")
    return host, int(port)


def tcp_probe(endpoint: str, timeout: float = 3.0) -> bool:
    """Return True if a TCP connection to ``host:port`` succeeds."""
    try:
        host, port = split_endpoint(endpoint)
    except ValueError as exc:
        logger.warning("Bad endpoint %r: %s", endpoint, exc)
        return False

    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as exc:
        logger.debug("tcp probe %s failed: %s", endpoint, exc)
        return False


def http_head(url: str, timeout: float = 5.0) -> dict:
    """Probe a URL with an HTTP HEAD request.

    Returns::

        {"reachable": True, "url": "https://...", "status": 200, "latency_ms": 42}
        or
        {"reachable": False, "url": "https://...", "error": "timeout", "latency_ms": 5000}
    """
    start = time.monotonic()
    try:
        req = urllib.request.Request(
            url,
            method="HEAD",
            headers={"User-Agent": _USER_AGENT},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return {
                "reachable": True,
                "url": url,
                "status": resp.getcode(),
                "latency_ms": int((time.monotonic() - start) * 1000),
            }
    except Exception as exc:
        return {
            "reachable": False,
            "url": url,
            "error": str(exc)[:200],
            "latency_ms": int((time.monotonic() - start) * 1000),
        }
