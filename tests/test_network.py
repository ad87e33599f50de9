from __future__ import annotations

import asyncio

from drawerctl.core.detector import NetworkAutoDetector
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.errors import TransportSendError, TransportTimeoutError
from drawerctl.core.model import AttemptOutcome, DrawerSettings, NetworkCandidate, NetworkInterface
from drawerctl.core.network_driver import NetworkDrawerDriver

from fakes import FakeNetworkTransport

PIN2 = bytes.fromhex("1b700019fa")


def _detector(settings: DrawerSettings, transport: FakeNetworkTransport, interfaces) -> NetworkAutoDetector:
    return NetworkAutoDetector(
        settings=settings.network,
        transport=transport,
        interfaces=lambda: list(interfaces),
        diagnostics=DiagnosticsSink(settings.diagnostics),
    )


def _driver(settings: DrawerSettings, transport: FakeNetworkTransport) -> NetworkDrawerDriver:
    return NetworkDrawerDriver(
        settings=settings.network,
        commands=settings.commands,
        transport=transport,
        diagnostics=DiagnosticsSink(settings.diagnostics),
    )


def test_detect_returns_first_responsive_and_stops(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(reachable={"192.168.5.1:515", "192.168.5.100:9100"})
    detector = _detector(settings, transport, [NetworkInterface(name="eth0", address="192.168.5.37")])

    found = asyncio.run(detector.detect())

    assert found == NetworkCandidate(address="192.168.5.1", port=515)
    assert [label for label, _ in transport.probes] == [
        "192.168.5.37:9100",
        "192.168.5.37:515",
        "192.168.5.1:9100",
        "192.168.5.1:515",
    ]
    assert all(timeout == settings.network.probe_timeout_s for _, timeout in transport.probes)
    assert transport.sends == []


def test_detect_none_found_probes_bounded_list(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport()
    detector = _detector(settings, transport, [NetworkInterface(name="eth0", address="192.168.5.37")])

    assert asyncio.run(detector.detect()) is None
    addresses = {label.rsplit(":", 1)[0] for label, _ in transport.probes}
    assert len(addresses) <= settings.network.max_candidates
    assert len(transport.probes) == len(addresses) * len(settings.network.probe_ports)
    assert transport.sends == []


def test_detect_survives_interface_enumeration_error(settings: DrawerSettings) -> None:
    def broken() -> list[NetworkInterface]:
        raise OSError("netlink unavailable")

    transport = FakeNetworkTransport(reachable={"192.168.0.100:9100"})
    detector = NetworkAutoDetector(
        settings=settings.network,
        transport=transport,
        interfaces=broken,
        diagnostics=DiagnosticsSink(settings.diagnostics),
    )

    assert asyncio.run(detector.detect()) == NetworkCandidate(address="192.168.0.100", port=9100)


def test_scan_returns_every_responsive_pair(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(reachable={"192.168.5.1:515", "192.168.5.100:9100", "192.168.0.100:9100"})
    detector = _detector(settings, transport, [NetworkInterface(name="eth0", address="192.168.5.37")])

    found = asyncio.run(detector.scan())

    assert [c.label for c in found] == ["192.168.5.1:515", "192.168.5.100:9100", "192.168.0.100:9100"]
    assert transport.sends == []


def test_discovered_candidate_opens_with_default_port(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(reachable={"192.168.5.100:9100"}, accept={"192.168.5.100:9100"})
    detector = _detector(settings, transport, [NetworkInterface(name="eth0", address="192.168.5.37")])

    found = asyncio.run(detector.detect())
    assert found is not None
    attempt = asyncio.run(_driver(settings, transport).open(found))

    assert attempt.success
    assert attempt.candidate.address == "192.168.5.100"
    assert attempt.candidate.port == settings.network.default_port


def test_driver_sends_first_command_only(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(accept={"10.0.0.5:9100"})

    attempt = asyncio.run(_driver(settings, transport).open(NetworkCandidate("10.0.0.5", 9100)))

    assert attempt.outcome is AttemptOutcome.SUCCESS
    assert attempt.command_index == 1
    assert transport.sends == [("10.0.0.5:9100", PIN2)]


def test_driver_maps_refused(settings: DrawerSettings) -> None:
    attempt = asyncio.run(_driver(settings, FakeNetworkTransport()).open(NetworkCandidate("10.0.0.5", 9100)))

    assert attempt.outcome is AttemptOutcome.REFUSED
    assert attempt.command_index is None
    assert "Connection refused" in attempt.detail


def test_driver_maps_timeout(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(error=TransportTimeoutError("TCP connect timed out"))

    attempt = asyncio.run(_driver(settings, transport).open(NetworkCandidate("10.0.0.5", 9100)))

    assert attempt.outcome is AttemptOutcome.TIMEOUT


def test_driver_maps_write_failure(settings: DrawerSettings) -> None:
    transport = FakeNetworkTransport(error=TransportSendError("TCP write failed"))

    attempt = asyncio.run(_driver(settings, transport).open(NetworkCandidate("10.0.0.5", 9100)))

    assert attempt.outcome is AttemptOutcome.WRITE_FAILED
    assert not attempt.success
