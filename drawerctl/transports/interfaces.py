"""Local IPv4 interface enumeration via psutil."""

from __future__ import annotations

import ipaddress
import socket

import psutil

from drawerctl.core.model import NetworkInterface


def list_ipv4_interfaces() -> list[NetworkInterface]:
    stats = psutil.net_if_stats()
    interfaces: list[NetworkInterface] = []
    for name, addresses in psutil.net_if_addrs().items():
        stat = stats.get(name)
        if stat is not None and not stat.isup:
            continue
        for addr in addresses:
            if addr.family != socket.AF_INET:
                continue
            if ipaddress.IPv4Address(addr.address).is_loopback:
                continue
            interfaces.append(NetworkInterface(name=name, address=addr.address, netmask=addr.netmask))
    return interfaces
