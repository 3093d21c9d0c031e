"""Local network address lookup for the share window."""

from __future__ import annotations

import logging as py_logging
import socket
from collections.abc import Callable

from launchdeck.constants import (
    LOOPBACK_ADDRESS,
    NETWORK_PROBE_HOST,
    NETWORK_PROBE_PORT,
    NETWORK_PROBE_TIMEOUT_SECONDS,
)

logger = py_logging.getLogger(__name__)


def local_network_address(
    *,
    socket_factory: Callable[..., socket.socket] = socket.socket,
) -> str:
    """Address of the interface used for outbound traffic.

    Connecting a UDP socket sends no packets; it only selects a route.
    """
    try:
        with socket_factory(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.settimeout(NETWORK_PROBE_TIMEOUT_SECONDS)
            probe.connect((NETWORK_PROBE_HOST, NETWORK_PROBE_PORT))
            address = str(probe.getsockname()[0] or "").strip()
    except OSError as exc:
        logger.warning("Local network address lookup failed: %s", exc)
        return LOOPBACK_ADDRESS
    return address or LOOPBACK_ADDRESS


def share_url(address: str, path: str = "/launchpad") -> str:
    return f"http://{address}{path}"
