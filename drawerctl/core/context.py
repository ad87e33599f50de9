"""Process-wide collaborators handed to the dispatcher."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

from drawerctl.core.config_loader import load_settings
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.model import DrawerSettings
from drawerctl.transports.base import InterfaceProvider, NetworkTransport, SerialTransport
from drawerctl.transports.interfaces import list_ipv4_interfaces
from drawerctl.transports.serial_port import PySerialTransport
from drawerctl.transports.tcp import TCPTransport


@dataclass(frozen=True)
class DrawerContext:
    """Settings, log sink and device access, built once per process."""

    settings: DrawerSettings
    diagnostics: DiagnosticsSink
    network_transport: NetworkTransport
    serial_transport: SerialTransport
    interfaces: InterfaceProvider
    platform: str = sys.platform
    warnings: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        *,
        config_path: Path | None = None,
        settings: DrawerSettings | None = None,
        network_transport: NetworkTransport | None = None,
        serial_transport: SerialTransport | None = None,
        interfaces: InterfaceProvider | None = None,
        platform: str = sys.platform,
    ) -> DrawerContext:
        warnings: tuple[str, ...] = ()
        if settings is None:
            loaded = load_settings(config_path)
            settings = loaded.settings
            warnings = loaded.warnings
        return cls(
            settings=settings,
            diagnostics=DiagnosticsSink(settings.diagnostics),
            network_transport=network_transport or TCPTransport(),
            serial_transport=serial_transport
            or PySerialTransport(write_timeout_s=settings.serial.write_timeout_s),
            interfaces=interfaces or list_ipv4_interfaces,
            platform=platform,
            warnings=warnings,
        )
