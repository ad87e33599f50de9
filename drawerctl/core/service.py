"""Request dispatcher used by the CLI and the host process."""

from __future__ import annotations

import importlib.util
import ipaddress
import logging

from drawerctl.core.attempts import first_success
from drawerctl.core.context import DrawerContext
from drawerctl.core.detector import NetworkAutoDetector
from drawerctl.core.errors import ConfigurationError, DeviceAccessError, SerialSelectionError
from drawerctl.core.model import (
    DrawerOpenRequest,
    DrawerOpenResult,
    NetworkAttempt,
    NetworkCandidate,
    SerialPortListing,
)
from drawerctl.core.network_driver import NetworkDrawerDriver
from drawerctl.core.serial_driver import SerialDrawerDriver
from drawerctl.core.serial_selector import SerialPortSelector

LOGGER = logging.getLogger(__name__)

MANUAL_ENTRY_HINT = "Enter the printer's IP address manually in the till settings."


class DrawerService:
    def __init__(self, context: DrawerContext | None = None) -> None:
        self.context = context or DrawerContext.create()
        self.load_warnings = self.context.warnings
        self.runtime_warnings = _runtime_warnings()

        settings = self.context.settings
        self.diagnostics = self.context.diagnostics
        self.detector = NetworkAutoDetector(
            settings=settings.network,
            transport=self.context.network_transport,
            interfaces=self.context.interfaces,
            diagnostics=self.diagnostics,
        )
        self.network_driver = NetworkDrawerDriver(
            settings=settings.network,
            commands=settings.commands,
            transport=self.context.network_transport,
            diagnostics=self.diagnostics,
        )
        self.serial_selector = SerialPortSelector(
            settings=settings.serial,
            transport=self.context.serial_transport,
            platform=self.context.platform,
        )
        self.serial_driver = SerialDrawerDriver(
            settings=settings.serial,
            commands=settings.commands,
            transport=self.context.serial_transport,
            diagnostics=self.diagnostics,
        )

    @property
    def log_file(self) -> str:
        return str(self.diagnostics.current_path)

    async def open_till(self, request: DrawerOpenRequest) -> DrawerOpenResult:
        """Open the cash drawer. Every failure is encoded in the returned result."""
        self.diagnostics.info(
            "Open till requested",
            {
                "ipAddress": request.ip_address,
                "port": request.port,
                "networkMode": request.network_mode,
                "portPath": request.port_path,
            },
        )
        kind = _transport_kind(request)
        try:
            if request.ip_address:
                result = await self._open_network_address(request)
            elif request.network_mode is True or request.network_mode == "auto":
                result = await self._open_detected_network()
            else:
                result = await self._open_serial(request)
        except (ConfigurationError, DeviceAccessError, SerialSelectionError) as exc:
            result = self._failure(kind, str(exc), error="configuration")
        except Exception as exc:
            LOGGER.exception("Unexpected failure while opening the cash drawer")
            result = self._failure(kind, f"Unexpected error: {exc}", error="internal")

        if result.success:
            self.diagnostics.info("Open till succeeded", result.to_dict())
        else:
            self.diagnostics.error("Open till failed", result.to_dict())
        return result

    async def _open_network_address(self, request: DrawerOpenRequest) -> DrawerOpenResult:
        address = request.ip_address or ""
        _validate_host(address)
        if not 1 <= request.port <= 65535:
            raise ConfigurationError(f"Invalid network port {request.port}; expected 1-65535")
        self.diagnostics.info("Using explicit network address", {"address": address, "port": request.port})
        attempt = await self.network_driver.open(NetworkCandidate(address=address, port=request.port))
        return self._network_result(attempt)

    async def _open_detected_network(self) -> DrawerOpenResult:
        self.diagnostics.info("Network mode without address; auto-detecting")
        candidates = self.detector.probe_candidates()
        fallback = [
            NetworkCandidate(address=address, port=port)
            for address in self.context.settings.network.fallback_addresses
            for port in self.context.settings.network.probe_ports
        ]
        if not candidates and not fallback:
            raise ConfigurationError(
                f"No network target available: no active interfaces and no configured addresses. {MANUAL_ENTRY_HINT}"
            )

        found = await self.detector.detect(candidates)
        if found is not None:
            return self._network_result(await self.network_driver.open(found))

        self.diagnostics.info(
            "Trying static fallback addresses",
            {"candidates": [candidate.label for candidate in fallback]},
        )
        log = await first_success(fallback, self.network_driver.open, succeeded=lambda a: a.success)
        if log.winner is not None:
            return self._network_result(log.winner)

        tried = ", ".join(candidate.label for candidate, _ in log.tried) or "none"
        return self._failure(
            "network",
            f"No network printer found by auto-detection or at common addresses ({tried}). {MANUAL_ENTRY_HINT}",
            error="exhausted",
        )

    async def _open_serial(self, request: DrawerOpenRequest) -> DrawerOpenResult:
        ports = self.serial_selector.list_ports()
        paths = self.serial_selector.ordered_paths(ports, request.port_path)
        self.diagnostics.info(
            "Using serial path",
            {"order": paths, "rates": list(self.context.settings.serial.baud_rates)},
        )

        run = await self.serial_driver.open(paths)
        winner = run.winner
        if winner is None:
            return self._failure(
                "serial",
                self.serial_driver.describe_failure(run, [port.path for port in ports]),
                error="exhausted",
            )
        return DrawerOpenResult(
            success=True,
            type="serial",
            message=(
                f"Cash drawer opened via serial port {winner.candidate.path} "
                f"at {winner.candidate.baudrate} baud"
            ),
            log_file=self.log_file,
            port=winner.candidate.path,
            baud_rate=winner.candidate.baudrate,
            command_used=winner.command_index,
        )

    def _network_result(self, attempt: NetworkAttempt) -> DrawerOpenResult:
        if attempt.success:
            return DrawerOpenResult(
                success=True,
                type="network",
                message=f"Cash drawer opened via network printer at {attempt.candidate.label}",
                log_file=self.log_file,
                address=attempt.candidate.label,
                command_used=attempt.command_index,
            )
        return self._failure(
            "network",
            f"Could not open cash drawer at {attempt.candidate.label}: {attempt.detail}",
            error=attempt.outcome.value,
        )

    def _failure(self, kind: str, message: str, *, error: str) -> DrawerOpenResult:
        return DrawerOpenResult(
            success=False,
            type="network" if kind == "network" else "serial",
            message=message,
            log_file=self.log_file,
            error=error,
        )

    def list_serial_ports(self) -> SerialPortListing:
        try:
            ports = self.serial_selector.list_ports()
        except DeviceAccessError as exc:
            self.diagnostics.warn("Serial port listing not available", {"error": str(exc)})
            return SerialPortListing(available=False, message=str(exc))
        return SerialPortListing(available=True, ports=tuple(ports))

    async def scan_network(self) -> list[NetworkCandidate]:
        return await self.detector.scan()


def _transport_kind(request: DrawerOpenRequest) -> str:
    if request.ip_address or request.network_mode is True or request.network_mode == "auto":
        return "network"
    return "serial"


def _validate_host(address: str) -> None:
    try:
        ipaddress.ip_address(address)
        return
    except ValueError:
        pass
    labels = address.rstrip(".").split(".")
    if not address or len(address) > 253 or not all(
        label and len(label) <= 63 and label.replace("-", "").isalnum() for label in labels
    ):
        raise ConfigurationError(f"Invalid printer address '{address}'")


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if importlib.util.find_spec("serial") is None or importlib.util.find_spec("serial_asyncio") is None:
        warnings.append(
            "pyserial/pyserial-asyncio not importable; serial drawer commands will fail."
        )
    return tuple(warnings)
