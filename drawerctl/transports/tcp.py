"""TCP transport implementation using asyncio streams."""

from __future__ import annotations

import asyncio
import logging
import socket

from drawerctl.core.errors import (
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)

LOGGER = logging.getLogger(__name__)


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as exc:
        LOGGER.debug("Ignoring error while closing socket: %s", exc)


class TCPTransport:
    async def probe(self, address: str, port: int, *, timeout_s: float) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(address, port),
                timeout=timeout_s,
            )
        except (TimeoutError, OSError):
            return False
        await _close(writer)
        return True

    async def send(
        self,
        address: str,
        port: int,
        payload: bytes,
        *,
        timeout_s: float = 5.0,
        hold_s: float = 1.0,
    ) -> None:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(address, port),
                timeout=timeout_s,
            )
        except TimeoutError as exc:
            raise TransportTimeoutError(
                f"TCP connect timed out for {address}:{port} after {timeout_s:g}s"
            ) from exc
        except OSError as exc:
            raise TransportConnectError(f"TCP connect failed for {address}:{port}: {exc}") from exc

        try:
            sock = writer.get_extra_info("socket")
            if sock is not None:
                try:
                    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                except OSError as exc:
                    raise TransportConnectError(
                        f"TCP socket setup failed for {address}:{port}: {exc}"
                    ) from exc

            try:
                writer.write(payload)
                await asyncio.wait_for(writer.drain(), timeout=timeout_s)
            except TimeoutError as exc:
                raise TransportTimeoutError(f"TCP write timed out for {address}:{port}") from exc
            except OSError as exc:
                raise TransportSendError(f"TCP write failed for {address}:{port}: {exc}") from exc

            # The frame is out; the printer gets time to act before the close.
            await asyncio.sleep(hold_s)
        finally:
            await _close(writer)
