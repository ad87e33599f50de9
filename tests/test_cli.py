from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from drawerctl import cli
from drawerctl.core.model import DrawerOpenResult, NetworkCandidate, SerialPortInfo, SerialPortListing


class FakeService:
    def __init__(self) -> None:
        self.requests = []
        self.load_warnings = ()
        self.runtime_warnings = ()

    async def open_till(self, request):
        self.requests.append(request)
        if request.ip_address:
            return DrawerOpenResult(
                success=True,
                type="network",
                message=f"Cash drawer opened via network printer at {request.ip_address}:{request.port}",
                log_file="/var/log/drawer-2026-10-17.log",
                address=f"{request.ip_address}:{request.port}",
                command_used=1,
            )
        return DrawerOpenResult(
            success=False,
            type="serial",
            message="No serial ports found. Connect the cash drawer and retry.",
            log_file="/var/log/drawer-2026-10-17.log",
            error="configuration",
        )

    def list_serial_ports(self):
        return SerialPortListing(
            available=True,
            ports=(SerialPortInfo(path="/dev/ttyUSB0", manufacturer="FTDI", vendor_id="0403", product_id="6001"),),
        )

    async def scan_network(self):
        return [NetworkCandidate(address="192.168.0.100", port=9100)]


runner = CliRunner()


def test_open_with_address(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["open", "--ip", "10.0.0.5"])
    assert result.exit_code == 0
    assert "10.0.0.5:9100" in result.stdout
    assert "command=1" in result.stdout


def test_open_json_output(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["open", "--ip", "10.0.0.5", "--port", "9101", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["address"] == "10.0.0.5:9101"
    assert data["commandUsed"] == 1


def test_open_failure_exits_nonzero(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["open", "--mode", "serial"])
    assert result.exit_code == 1
    assert "Error: No serial ports found" in result.stderr
    assert "drawer-2026-10-17.log" in result.stderr
    assert "Traceback" not in result.stderr


def test_open_rejects_unknown_mode(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["open", "--mode", "bluetooth"])
    assert result.exit_code == 1
    assert "Unknown mode 'bluetooth'" in result.stderr


def test_ports_command(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["ports"])
    assert result.exit_code == 0
    assert "/dev/ttyUSB0 0403:6001 FTDI" in result.stdout


def test_ports_not_available(monkeypatch):
    class NoSerialService(FakeService):
        def list_serial_ports(self):
            return SerialPortListing(available=False, message="Serial access requires 'pyserial'.")

    monkeypatch.setattr(cli, "DrawerService", NoSerialService)
    result = runner.invoke(cli.app, ["ports", "--json"])
    assert result.exit_code == 1
    assert json.loads(result.stdout)["available"] is False


def test_scan_command(monkeypatch):
    monkeypatch.setattr(cli, "DrawerService", FakeService)
    result = runner.invoke(cli.app, ["scan"])
    assert result.exit_code == 0
    assert "192.168.0.100:9100" in result.stdout


def test_config_error_is_clean(monkeypatch):
    class BrokenConfigService(FakeService):
        def __init__(self) -> None:
            from drawerctl.core.errors import ConfigValidationError

            raise ConfigValidationError("Schema validation failed for config.yaml (network.default_port)")

    monkeypatch.setattr(cli, "DrawerService", BrokenConfigService)
    result = runner.invoke(cli.app, ["open", "--ip", "10.0.0.5"])
    assert result.exit_code == 1
    assert "Error: Schema validation failed" in result.stderr
    assert "Traceback" not in result.stdout


def test_runtime_warning_is_printed(monkeypatch):
    class WarnService(FakeService):
        def __init__(self) -> None:
            super().__init__()
            self.runtime_warnings = ("pyserial/pyserial-asyncio not importable; serial drawer commands will fail.",)
            self.load_warnings = ()

    monkeypatch.setattr(cli, "DrawerService", WarnService)
    result = runner.invoke(cli.app, ["scan"])
    assert result.exit_code == 0
    assert "Warning: pyserial/pyserial-asyncio not importable" in result.stderr


def test_config_command_lists_commands(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    result = runner.invoke(cli.app, ["config"])
    assert result.exit_code == 0
    assert "1. escpos-pin2: ESC p 0 25 250" in result.stdout
    assert "5. dle-dc4-pulse: DLE DC4 1 0 1" in result.stdout
    assert "rates=9600,19200,115200,38400,57600" in result.stdout
