"""Core data models used across config loader, drivers, service, and CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Mapping

from drawerctl.core.commands import CommandTable
from drawerctl.core.errors import ConfigurationError

DEFAULT_PORT = 9100

NetworkMode = bool | Literal["auto"] | None


@dataclass(frozen=True)
class DrawerOpenRequest:
    ip_address: str | None = None
    port: int = DEFAULT_PORT
    network_mode: NetworkMode = None
    port_path: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DrawerOpenRequest:
        """Build a request from the camelCase payload used by the host process."""
        raw_port = data.get("port")
        if raw_port is None or raw_port == "":
            port = DEFAULT_PORT
        else:
            try:
                port = int(raw_port)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid network port {raw_port!r}") from exc

        mode = data.get("networkMode")
        if isinstance(mode, str):
            lowered = mode.strip().lower()
            if lowered == "auto":
                mode = "auto"
            elif lowered in {"true", "network"}:
                mode = True
            elif lowered in {"false", "serial"}:
                mode = False
            else:
                raise ConfigurationError(f"Invalid networkMode {mode!r}")
        elif mode is not None and not isinstance(mode, bool):
            raise ConfigurationError(f"Invalid networkMode {mode!r}")

        return cls(
            ip_address=_optional_text(data, "ipAddress"),
            port=port,
            network_mode=mode,
            port_path=_optional_text(data, "portPath"),
        )


def _optional_text(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid {key} {value!r}")
    return value.strip() or None


@dataclass(frozen=True)
class NetworkCandidate:
    address: str
    port: int

    @property
    def label(self) -> str:
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class SerialCandidate:
    path: str
    baudrate: int


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    address: str
    netmask: str | None = None


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    REFUSED = "refused"
    TIMEOUT = "timeout"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class NetworkAttempt:
    candidate: NetworkCandidate
    outcome: AttemptOutcome
    detail: str
    command_index: int | None = None

    @property
    def success(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS


@dataclass(frozen=True)
class SerialAttempt:
    candidate: SerialCandidate
    outcome: AttemptOutcome
    detail: str
    command_index: int | None = None
    commands_tried: int = 0

    @property
    def success(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS


@dataclass(frozen=True)
class SerialRun:
    """Every per-rate attempt made by the serial driver, in order."""

    paths: tuple[str, ...]
    attempts: tuple[SerialAttempt, ...]

    @property
    def winner(self) -> SerialAttempt | None:
        for attempt in self.attempts:
            if attempt.success:
                return attempt
        return None


@dataclass(frozen=True)
class DrawerOpenResult:
    success: bool
    type: Literal["network", "serial"]
    message: str
    log_file: str
    address: str | None = None
    port: str | None = None
    baud_rate: int | None = None
    command_used: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "type": self.type,
            "logFile": self.log_file,
        }
        if self.address is not None:
            data["address"] = self.address
        if self.port is not None:
            data["port"] = self.port
        if self.baud_rate is not None:
            data["baudRate"] = self.baud_rate
        if self.command_used is not None:
            data["commandUsed"] = self.command_used
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SerialPortInfo:
    path: str
    manufacturer: str | None = None
    vendor_id: str | None = None
    product_id: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "manufacturer": self.manufacturer,
            "vendorId": self.vendor_id,
            "productId": self.product_id,
            "description": self.description,
        }


@dataclass(frozen=True)
class SerialPortListing:
    available: bool
    ports: tuple[SerialPortInfo, ...] = ()
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "available": self.available,
            "ports": [port.to_dict() for port in self.ports],
        }
        if self.message:
            data["message"] = self.message
        return data


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: Literal["INFO", "WARN", "ERROR"]
    message: str
    payload: Mapping[str, Any] | None = None

    def format(self) -> str:
        stamp = self.timestamp.isoformat(timespec="milliseconds")
        line = f"[{stamp}] [{self.level}] {self.message}"
        if self.payload:
            line += " " + json.dumps(self.payload, sort_keys=True, default=str)
        # One physical line per entry keeps appends line-atomic.
        return line.replace("\r", " ").replace("\n", " ") + "\n"


@dataclass(frozen=True)
class PortHeuristic:
    names: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()


@dataclass(frozen=True)
class NetworkSettings:
    default_port: int = DEFAULT_PORT
    probe_ports: tuple[int, ...] = (9100, 515)
    probe_timeout_s: float = 0.2
    connect_timeout_s: float = 5.0
    hold_open_s: float = 1.0
    max_candidates: int = 30
    preferred_subnets: tuple[str, ...] = ()
    well_known_addresses: tuple[str, ...] = ()
    fallback_addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class SerialSettings:
    baud_rates: tuple[int, ...] = (9600, 19200, 115200, 38400, 57600)
    open_timeout_s: float = 10.0
    write_timeout_s: float = 5.0
    hold_open_s: float = 1.0
    port_heuristics: dict[str, PortHeuristic] = field(default_factory=dict)


@dataclass(frozen=True)
class DiagnosticsSettings:
    log_dir: Path
    file_prefix: str = "drawer"


@dataclass(frozen=True)
class DrawerSettings:
    commands: CommandTable
    network: NetworkSettings
    serial: SerialSettings
    diagnostics: DiagnosticsSettings
