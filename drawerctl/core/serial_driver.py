"""Drawer kick delivered over a directly wired serial/USB port."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum

from drawerctl.core.attempts import first_success
from drawerctl.core.commands import CommandTable
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.errors import SerialSelectionError, TransportError, TransportTimeoutError
from drawerctl.core.model import (
    AttemptOutcome,
    SerialAttempt,
    SerialCandidate,
    SerialRun,
    SerialSettings,
)
from drawerctl.transports.base import SerialLink, SerialTransport

LOGGER = logging.getLogger(__name__)


class SerialState(str, Enum):
    CLOSED = "closed"
    OPENING = "opening"
    WRITING = "writing"
    HOLD_OPEN = "hold_open"


class SerialDrawerDriver:
    """Tries every (device, rate) pair in order and every command per open port.

    At most one port is open at any time, and it is closed on every terminal
    transition of the per-rate state machine.
    """

    def __init__(
        self,
        *,
        settings: SerialSettings,
        commands: CommandTable,
        transport: SerialTransport,
        diagnostics: DiagnosticsSink,
    ) -> None:
        self.settings = settings
        self.commands = commands
        self.transport = transport
        self.diagnostics = diagnostics

    def candidates(self, paths: Sequence[str]) -> list[SerialCandidate]:
        return [
            SerialCandidate(path=path, baudrate=rate)
            for path in paths
            for rate in self.settings.baud_rates
        ]

    async def open(self, paths: Sequence[str]) -> SerialRun:
        if not paths:
            raise SerialSelectionError("No serial ports found. Connect the cash drawer and retry.")

        log = await first_success(self.candidates(paths), self.attempt, succeeded=lambda a: a.success)
        return SerialRun(paths=tuple(paths), attempts=tuple(result for _, result in log.tried))

    async def attempt(self, candidate: SerialCandidate) -> SerialAttempt:
        """Run the state machine for one rate until success or terminal failure."""
        self._enter(candidate, SerialState.OPENING)
        try:
            link = await self.transport.open(
                candidate.path,
                baudrate=candidate.baudrate,
                timeout_s=self.settings.open_timeout_s,
            )
        except TransportTimeoutError as exc:
            return self._failed(candidate, AttemptOutcome.TIMEOUT, str(exc))
        except TransportError as exc:
            return self._failed(candidate, AttemptOutcome.REFUSED, str(exc))

        try:
            return await self._write_commands(candidate, link)
        finally:
            await self._close(candidate, link)

    async def _write_commands(self, candidate: SerialCandidate, link: SerialLink) -> SerialAttempt:
        errors: list[str] = []
        for index, command in self.commands.numbered():
            self._enter(candidate, SerialState.WRITING, command=index)
            try:
                await link.write(command.frame)
            except TransportError as exc:
                errors.append(f"command {index}: {exc}")
                LOGGER.debug("Command %d failed on %s@%d: %s", index, candidate.path, candidate.baudrate, exc)
                continue

            self._enter(candidate, SerialState.HOLD_OPEN, command=index)
            await asyncio.sleep(self.settings.hold_open_s)
            self.diagnostics.info(
                f"Drawer command sent on {candidate.path}",
                {"baudRate": candidate.baudrate, "command": index, "frame": command.describe()},
            )
            return SerialAttempt(
                candidate=candidate,
                outcome=AttemptOutcome.SUCCESS,
                detail=f"Command {index} ({command.describe()}) sent on {candidate.path} at {candidate.baudrate} baud",
                command_index=index,
                commands_tried=index,
            )

        return self._failed(
            candidate,
            AttemptOutcome.WRITE_FAILED,
            "; ".join(errors),
            commands_tried=len(self.commands),
        )

    async def _close(self, candidate: SerialCandidate, link: SerialLink) -> None:
        try:
            await link.close()
        except (TransportError, OSError) as exc:
            self.diagnostics.warn(f"Closing {candidate.path} failed", {"error": str(exc)})
        self._enter(candidate, SerialState.CLOSED)

    def _enter(self, candidate: SerialCandidate, state: SerialState, *, command: int | None = None) -> None:
        LOGGER.debug(
            "%s@%d -> %s%s",
            candidate.path,
            candidate.baudrate,
            state.value,
            f"[{command}]" if command is not None else "",
        )

    def _failed(
        self,
        candidate: SerialCandidate,
        outcome: AttemptOutcome,
        detail: str,
        *,
        commands_tried: int = 0,
    ) -> SerialAttempt:
        self.diagnostics.warn(
            f"Serial attempt on {candidate.path} at {candidate.baudrate} baud failed",
            {"outcome": outcome.value, "commandsTried": commands_tried, "error": detail},
        )
        return SerialAttempt(
            candidate=candidate,
            outcome=outcome,
            detail=detail,
            commands_tried=commands_tried,
        )

    def describe_failure(self, run: SerialRun, enumerated: Sequence[str]) -> str:
        rates = ", ".join(str(rate) for rate in self.settings.baud_rates)
        opened = sum(1 for attempt in run.attempts if attempt.commands_tried)
        return (
            f"Could not open cash drawer over serial. Tried {len(run.attempts)} port/rate "
            f"combinations on {', '.join(run.paths)} (rates {rates}; "
            f"{len(self.commands)} commands per opened port, {opened} opened). "
            f"Available ports: {', '.join(enumerated) or 'none'}"
        )
