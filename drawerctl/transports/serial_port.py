"""Serial transport implementation using pyserial and pyserial-asyncio."""

from __future__ import annotations

import asyncio
import logging

from drawerctl.core.errors import (
    DeviceAccessError,
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)
from drawerctl.core.model import SerialPortInfo

LOGGER = logging.getLogger(__name__)


def _hex_id(value: int | None) -> str | None:
    return f"{value:04x}" if value is not None else None


class AsyncSerialLink:
    def __init__(self, path: str, writer: asyncio.StreamWriter, *, write_timeout_s: float) -> None:
        self.path = path
        self._writer = writer
        self._write_timeout_s = write_timeout_s

    async def write(self, payload: bytes) -> None:
        try:
            self._writer.write(payload)
            await asyncio.wait_for(self._writer.drain(), timeout=self._write_timeout_s)
            port = getattr(self._writer.transport, "serial", None)
            if port is not None:
                await asyncio.to_thread(port.flush)
        except TimeoutError as exc:
            raise TransportTimeoutError(f"Serial write timed out on {self.path}") from exc
        except OSError as exc:
            raise TransportSendError(f"Serial write failed on {self.path}: {exc}") from exc

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            LOGGER.debug("Ignoring error while closing %s: %s", self.path, exc)


class PySerialTransport:
    def __init__(self, *, write_timeout_s: float = 5.0) -> None:
        self.write_timeout_s = write_timeout_s

    def list_ports(self) -> list[SerialPortInfo]:
        try:
            from serial.tools import list_ports  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise DeviceAccessError(
                "Serial access requires 'pyserial'. Install dependency and retry."
            ) from exc

        try:
            found = list_ports.comports()
        except OSError as exc:
            raise DeviceAccessError(f"Serial port enumeration failed: {exc}") from exc

        ports = [
            SerialPortInfo(
                path=item.device,
                manufacturer=item.manufacturer,
                vendor_id=_hex_id(item.vid),
                product_id=_hex_id(item.pid),
                description=item.description,
            )
            for item in found
        ]
        return sorted(ports, key=lambda p: p.path)

    async def open(self, path: str, *, baudrate: int, timeout_s: float = 10.0) -> AsyncSerialLink:
        try:
            import serial  # type: ignore
            import serial_asyncio  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise DeviceAccessError(
                "Serial access requires 'pyserial-asyncio'. Install dependency and retry."
            ) from exc

        try:
            _, writer = await asyncio.wait_for(
                serial_asyncio.open_serial_connection(
                    url=path,
                    baudrate=baudrate,
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                ),
                timeout=timeout_s,
            )
        except TimeoutError as exc:
            raise TransportTimeoutError(
                f"Opening {path} at {baudrate} baud timed out after {timeout_s:g}s"
            ) from exc
        except (OSError, ValueError) as exc:
            raise TransportConnectError(f"Could not open {path} at {baudrate} baud: {exc}") from exc

        return AsyncSerialLink(path, writer, write_timeout_s=self.write_timeout_s)
