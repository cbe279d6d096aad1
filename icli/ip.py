"""Network address summary for a shell prompt."""

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Iterable, Mapping

import psutil


def ps1_entries(interfaces: Mapping[str, Iterable[str]], no_name: bool = False) -> list[str]:
    """IPv4 addresses of non-loopback interfaces that have addresses, as ``name=ip`` or ``ip``."""
    entries = []
    for name, addresses in interfaces.items():
        ips = [ipaddress.ip_address(a) for a in addresses]
        if not ips or any(ip.is_loopback for ip in ips):
            continue
        entries.extend(str(ip) if no_name else f"{name}={ip}" for ip in ips if ip.version == 4)
    return entries


def _system_interfaces() -> dict[str, list[str]]:
    families = (socket.AF_INET, socket.AF_INET6)
    return {
        name: [a.address.split("%", 1)[0] for a in addrs if a.family in families]
        for name, addrs in psutil.net_if_addrs().items()
    }


def ps1(no_name: bool = False) -> str:
    """The prompt fragment for this host's interfaces."""
    return " ".join(ps1_entries(_system_interfaces(), no_name))