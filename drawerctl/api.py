"""Stable public API for host processes embedding drawerctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from drawerctl.core.commands import CommandTable, CommandVariant
from drawerctl.core.context import DrawerContext
from drawerctl.core.errors import (
    ConfigLoadError,
    ConfigurationError,
    ConfigValidationError,
    DeviceAccessError,
    DrawerctlError,
    SerialSelectionError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from drawerctl.core.model import (
    DrawerOpenRequest,
    DrawerOpenResult,
    NetworkCandidate,
    SerialPortInfo,
    SerialPortListing,
)
from drawerctl.core.service import DrawerService

__all__ = [
    "DrawerctlError",
    "ConfigurationError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DeviceAccessError",
    "SerialSelectionError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "CommandTable",
    "CommandVariant",
    "DrawerContext",
    "DrawerOpenRequest",
    "DrawerOpenResult",
    "NetworkCandidate",
    "SerialPortInfo",
    "SerialPortListing",
    "Client",
]


class Client:
    """Public client for opening cash drawers.

    Build one per process and reuse it; all methods that touch the network or
    a serial port are coroutines and must be awaited on the host's event loop.
    """

    def __init__(
        self,
        *,
        context: DrawerContext | None = None,
        config_path: Path | None = None,
    ) -> None:
        if context is None:
            context = DrawerContext.create(config_path=config_path)
        self._service = DrawerService(context)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    @property
    def log_file(self) -> str:
        return self._service.log_file

    async def open_till(self, request: DrawerOpenRequest | Mapping[str, Any] | None = None) -> DrawerOpenResult:
        """Open the drawer; accepts a request object or the camelCase IPC payload."""
        if request is None:
            request = DrawerOpenRequest()
        elif not isinstance(request, DrawerOpenRequest):
            try:
                request = DrawerOpenRequest.from_dict(request)
            except ConfigurationError as exc:
                return DrawerOpenResult(
                    success=False,
                    type="network" if request.get("ipAddress") else "serial",
                    message=str(exc),
                    log_file=self.log_file,
                    error="configuration",
                )
        return await self._service.open_till(request)

    def list_serial_ports(self) -> SerialPortListing:
        return self._service.list_serial_ports()

    async def scan_network(self) -> list[NetworkCandidate]:
        return await self._service.scan_network()
