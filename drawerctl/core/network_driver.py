"""Drawer kick delivered through a networked receipt printer."""

from __future__ import annotations

from drawerctl.core.commands import CommandTable
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.errors import TransportConnectError, TransportSendError, TransportTimeoutError
from drawerctl.core.model import AttemptOutcome, NetworkAttempt, NetworkCandidate, NetworkSettings
from drawerctl.transports.base import NetworkTransport


class NetworkDrawerDriver:
    def __init__(
        self,
        *,
        settings: NetworkSettings,
        commands: CommandTable,
        transport: NetworkTransport,
        diagnostics: DiagnosticsSink,
    ) -> None:
        self.settings = settings
        self.commands = commands
        self.transport = transport
        self.diagnostics = diagnostics

    async def open(self, candidate: NetworkCandidate) -> NetworkAttempt:
        """Send the first command variant to candidate over a single connection."""
        index, command = self.commands.first()
        payload = {"command": index, "frame": command.describe()}
        self.diagnostics.info(f"Connecting to printer at {candidate.label}", payload)

        try:
            await self.transport.send(
                candidate.address,
                candidate.port,
                command.frame,
                timeout_s=self.settings.connect_timeout_s,
                hold_s=self.settings.hold_open_s,
            )
        except TransportTimeoutError as exc:
            return self._failed(candidate, AttemptOutcome.TIMEOUT, str(exc))
        except TransportConnectError as exc:
            return self._failed(candidate, AttemptOutcome.REFUSED, str(exc))
        except TransportSendError as exc:
            return self._failed(candidate, AttemptOutcome.WRITE_FAILED, str(exc))

        self.diagnostics.info(f"Drawer command sent to {candidate.label}", payload)
        return NetworkAttempt(
            candidate=candidate,
            outcome=AttemptOutcome.SUCCESS,
            detail=f"Command {index} ({command.describe()}) sent to {candidate.label}",
            command_index=index,
        )

    def _failed(self, candidate: NetworkCandidate, outcome: AttemptOutcome, detail: str) -> NetworkAttempt:
        self.diagnostics.warn(
            f"Network attempt on {candidate.label} failed",
            {"outcome": outcome.value, "error": detail},
        )
        return NetworkAttempt(candidate=candidate, outcome=outcome, detail=detail)
