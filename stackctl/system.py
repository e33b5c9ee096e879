"""Host networking lookups used to build outbound URLs."""

from __future__ import annotations

import ipaddress
import logging
import subprocess
from typing import List, Optional

from .constants import LOOPBACK_ADDRESS

log = logging.getLogger(__name__)

COMMAND_TIMEOUT = 5


def resolve_host_address(override: Optional[str] = None) -> str:
    """Return the host's routable IPv4 address.

    Precedence: an explicit override, the address on the default-route
    interface, the first IPv4 token from ``hostname -I``, then loopback.
    Never raises.
    """
    if override:
        log.debug("Using configured host address %s", override)
        return override

    for strategy in (_default_route_address, _hostname_address):
        address = strategy()
        if address:
            log.debug("Resolved host address %s via %s", address, strategy.__name__)
            return address

    log.debug("Falling back to loopback host address")
    return LOOPBACK_ADDRESS


def _run(command: List[str]) -> Optional[str]:
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        log.debug("%s unavailable: %s", command[0], exc)
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def _default_route_address() -> Optional[str]:
    routes = _run(["ip", "route"])
    if not routes:
        return None
    interface = default_route_interface(routes)
    if not interface:
        return None
    addresses = _run(["ip", "-4", "addr", "show", interface])
    if not addresses:
        return None
    return first_inet_address(addresses)


def _hostname_address() -> Optional[str]:
    output = _run(["hostname", "-I"])
    if not output:
        return None
    return first_ipv4_token(output.split())


def default_route_interface(routes: str) -> Optional[str]:
    """Interface named by the first ``default`` line of ``ip route`` output."""
    for line in routes.splitlines():
        parts = line.split()
        if not parts or parts[0] != "default":
            continue
        if "dev" in parts:
            index = parts.index("dev")
            if index + 1 < len(parts):
                return parts[index + 1]
        return None
    return None


def first_inet_address(addr_output: str) -> Optional[str]:
    """First ``inet a.b.c.d/nn`` address in ``ip -4 addr show`` output."""
    for line in addr_output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "inet":
            candidate = parts[1].split("/", 1)[0]
            if _is_ipv4(candidate):
                return candidate
    return None


def first_ipv4_token(tokens: List[str]) -> Optional[str]:
    for token in tokens:
        if _is_ipv4(token):
            return token
    return None


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True
