"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from drawerctl.core.model import NetworkInterface, SerialPortInfo


class NetworkTransport(Protocol):
    async def probe(self, address: str, port: int, *, timeout_s: float) -> bool:
        """Return True when a TCP connect succeeds. Never sends data."""

    async def send(
        self,
        address: str,
        port: int,
        payload: bytes,
        *,
        timeout_s: float = 5.0,
        hold_s: float = 1.0,
    ) -> None:
        """Deliver payload over one TCP connection, then hold and close it."""


class SerialLink(Protocol):
    async def write(self, payload: bytes) -> None:
        """Write, drain and flush payload."""

    async def close(self) -> None:
        """Release the underlying handle."""


class SerialTransport(Protocol):
    def list_ports(self) -> list[SerialPortInfo]:
        """Enumerate serial devices in a stable order."""

    async def open(self, path: str, *, baudrate: int, timeout_s: float = 10.0) -> SerialLink:
        """Open path at baudrate with 8N1 framing."""


class InterfaceProvider(Protocol):
    def __call__(self) -> list[NetworkInterface]:
        """Return active, non-loopback IPv4 interfaces."""
