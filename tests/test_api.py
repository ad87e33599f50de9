from __future__ import annotations

import asyncio

from drawerctl.api import Client, DrawerContext, DrawerOpenRequest
from drawerctl.core.diagnostics import DiagnosticsSink
from drawerctl.core.model import DrawerSettings

from fakes import FakeNetworkTransport, FakeSerialTransport, interfaces_of


def _client(settings: DrawerSettings, network: FakeNetworkTransport) -> Client:
    context = DrawerContext(
        settings=settings,
        diagnostics=DiagnosticsSink(settings.diagnostics),
        network_transport=network,
        serial_transport=FakeSerialTransport(["/dev/ttyUSB0"]),
        interfaces=interfaces_of(),
        platform="linux",
    )
    return Client(context=context)


def test_client_accepts_ipc_payload(settings: DrawerSettings) -> None:
    client = _client(settings, FakeNetworkTransport(accept={"10.0.0.5:9100"}))

    result = asyncio.run(client.open_till({"ipAddress": "10.0.0.5", "port": 9100}))

    assert result.to_dict()["address"] == "10.0.0.5:9100"
    assert result.log_file == client.log_file


def test_client_accepts_request_object(settings: DrawerSettings) -> None:
    client = _client(settings, FakeNetworkTransport(accept={"10.0.0.5:9100"}))

    result = asyncio.run(client.open_till(DrawerOpenRequest(ip_address="10.0.0.5")))

    assert result.success is True
    assert result.command_used == 1


def test_client_bad_payload_returns_configuration_result(settings: DrawerSettings) -> None:
    network = FakeNetworkTransport()
    client = _client(settings, network)

    result = asyncio.run(client.open_till({"ipAddress": "10.0.0.5", "port": "abc"}))

    assert result.success is False
    assert result.type == "network"
    assert result.error == "configuration"
    assert network.sends == []


def test_client_non_string_fields_return_configuration_result(settings: DrawerSettings) -> None:
    network = FakeNetworkTransport()
    client = _client(settings, network)

    by_address = asyncio.run(client.open_till({"ipAddress": 10, "port": 9100}))
    by_path = asyncio.run(client.open_till({"networkMode": False, "portPath": 3}))

    assert by_address.success is False
    assert by_address.error == "configuration"
    assert "ipAddress" in by_address.message
    assert by_path.success is False
    assert by_path.type == "serial"
    assert by_path.error == "configuration"
    assert "portPath" in by_path.message
    assert network.sends == [] and network.probes == []


def test_client_lists_ports(settings: DrawerSettings) -> None:
    client = _client(settings, FakeNetworkTransport())

    listing = client.list_serial_ports()

    assert listing.available is True
    assert listing.to_dict()["ports"][0]["path"] == "/dev/ttyUSB0"
