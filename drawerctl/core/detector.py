"""Network printer auto-detection by short TCP reachability probes."""

from __future__ import annotations

import logging

from drawerctl.core.attempts import first_success
from drawerctl.core.candidates import probe_order
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.model import NetworkCandidate, NetworkSettings
from drawerctl.transports.base import InterfaceProvider, NetworkTransport

LOGGER = logging.getLogger(__name__)


class NetworkAutoDetector:
    """Finds a printer that accepts TCP connections on a common port.

    Only reachability is tested; no drawer-kick frame is ever written here.
    """

    def __init__(
        self,
        *,
        settings: NetworkSettings,
        transport: NetworkTransport,
        interfaces: InterfaceProvider,
        diagnostics: DiagnosticsSink,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.interfaces = interfaces
        self.diagnostics = diagnostics

    def candidate_addresses(self) -> list[str]:
        try:
            found = self.interfaces()
        except OSError as exc:
            self.diagnostics.warn("Network interface enumeration failed", {"error": str(exc)})
            found = []
        addresses = probe_order(
            found,
            well_known=self.settings.well_known_addresses,
            preferred_subnets=self.settings.preferred_subnets,
            limit=self.settings.max_candidates,
        )
        LOGGER.debug("Probe order (%d): %s", len(addresses), addresses)
        return addresses

    def probe_candidates(self) -> list[NetworkCandidate]:
        return [
            NetworkCandidate(address=address, port=port)
            for address in self.candidate_addresses()
            for port in self.settings.probe_ports
        ]

    async def _probe(self, candidate: NetworkCandidate) -> bool:
        reachable = await self.transport.probe(
            candidate.address,
            candidate.port,
            timeout_s=self.settings.probe_timeout_s,
        )
        LOGGER.debug("Probe %s -> %s", candidate.label, "open" if reachable else "closed")
        return reachable

    async def detect(self, candidates: list[NetworkCandidate] | None = None) -> NetworkCandidate | None:
        """Return the first responsive candidate, or None when nothing answers."""
        if candidates is None:
            candidates = self.probe_candidates()
        self.diagnostics.info(
            "Auto-detecting network printer",
            {"candidates": len(candidates), "ports": list(self.settings.probe_ports)},
        )
        log = await first_success(candidates, self._probe, succeeded=bool)
        if log.winner:
            found = log.tried[-1][0]
            self.diagnostics.info(f"Printer responded at {found.label}", {"probes": len(log.tried)})
            return found
        self.diagnostics.warn("No printer responded during auto-detection", {"probes": len(log.tried)})
        return None

    async def scan(self) -> list[NetworkCandidate]:
        """Probe the whole bounded candidate list and return every responsive pair."""
        candidates = self.probe_candidates()
        self.diagnostics.info("Scanning network for printers", {"candidates": len(candidates)})
        responsive: list[NetworkCandidate] = []
        for candidate in candidates:
            if await self._probe(candidate):
                responsive.append(candidate)
        self.diagnostics.info(
            "Network scan finished",
            {"responsive": [candidate.label for candidate in responsive]},
        )
        return responsive
