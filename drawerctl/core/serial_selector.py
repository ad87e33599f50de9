"""Serial device enumeration and selection."""

from __future__ import annotations

import sys

from drawerctl.core.errors import SerialSelectionError
from drawerctl.core.model import PortHeuristic, SerialPortInfo, SerialSettings
from drawerctl.transports.base import SerialTransport


def platform_key(platform: str) -> str:
    if platform.startswith("linux"):
        return "linux"
    if platform in {"win32", "cygwin"}:
        return "win32"
    return platform


def _heuristic_match(ports: list[SerialPortInfo], heuristic: PortHeuristic) -> SerialPortInfo | None:
    for name in heuristic.names:
        for port in ports:
            if port.path.casefold() == name.casefold():
                return port
    for prefix in heuristic.prefixes:
        for port in ports:
            if port.path.casefold().startswith(prefix.casefold()):
                return port
    return None


class SerialPortSelector:
    def __init__(
        self,
        *,
        settings: SerialSettings,
        transport: SerialTransport,
        platform: str = sys.platform,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.platform = platform_key(platform)

    def list_ports(self) -> list[SerialPortInfo]:
        return self.transport.list_ports()

    def select(self, ports: list[SerialPortInfo], explicit: str | None = None) -> str:
        """Pick one device path: explicit choice, then OS naming heuristics, then first found."""
        if not ports:
            raise SerialSelectionError("No serial ports found. Connect the cash drawer and retry.")

        if explicit:
            for port in ports:
                if port.path.casefold() == explicit.strip().casefold():
                    return port.path
            available = ", ".join(port.path for port in ports)
            raise SerialSelectionError(f"Serial port '{explicit}' not found. Available: {available}")

        heuristic = self.settings.port_heuristics.get(self.platform)
        if heuristic is not None:
            matched = _heuristic_match(ports, heuristic)
            if matched is not None:
                return matched.path
        return ports[0].path

    def ordered_paths(self, ports: list[SerialPortInfo], explicit: str | None = None) -> list[str]:
        """Selected path first; without an explicit choice the remaining devices follow."""
        selected = self.select(ports, explicit)
        if explicit:
            return [selected]
        return [selected] + [port.path for port in ports if port.path != selected]
