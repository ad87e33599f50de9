"""Probe-order generation for network discovery."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from drawerctl.core.model import NetworkInterface

_PRIORITY_HOSTS = (1, 100, 101)
_SWEEP_HOSTS = range(2, 21)


def subnet_prefix(address: str) -> str:
    """Return the /24 prefix of a dotted IPv4 address ('192.168.0.7' -> '192.168.0')."""
    return address.rsplit(".", 1)[0]


def interface_candidates(interface: NetworkInterface) -> list[str]:
    prefix = subnet_prefix(interface.address)
    addresses = [interface.address]
    addresses.extend(f"{prefix}.{host}" for host in _PRIORITY_HOSTS)
    addresses.extend(f"{prefix}.{host}" for host in _SWEEP_HOSTS if host not in _PRIORITY_HOSTS)
    return addresses


def _dedupe(addresses: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for address in addresses:
        if address in seen:
            continue
        seen.add(address)
        unique.append(address)
    return unique


def probe_order(
    interfaces: Sequence[NetworkInterface],
    *,
    well_known: Sequence[str] = (),
    preferred_subnets: Sequence[str] = (),
    limit: int = 30,
) -> list[str]:
    """Build the bounded, prioritized address list probed during discovery.

    Addresses on an interface's own subnet come first, then addresses on a
    configured preferred subnet (in preference order), then everything else.
    Relative discovery order is kept within each group.
    """
    own_subnets = [subnet_prefix(iface.address) for iface in interfaces]
    discovered: list[str] = list(well_known)
    for iface in interfaces:
        discovered.extend(interface_candidates(iface))

    def rank(address: str) -> int:
        prefix = subnet_prefix(address)
        if prefix in own_subnets:
            return 0
        if prefix in preferred_subnets:
            return 1 + list(preferred_subnets).index(prefix)
        return 1 + len(preferred_subnets)

    ordered = sorted(_dedupe(discovered), key=rank)
    return ordered[:limit]
