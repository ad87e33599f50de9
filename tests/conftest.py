from __future__ import annotations

from pathlib import Path

import pytest

from drawerctl.core.commands import CommandTable, CommandVariant
from drawerctl.core.model import (
    DiagnosticsSettings,
    DrawerSettings,
    NetworkSettings,
    PortHeuristic,
    SerialSettings,
)

PIN2 = bytes.fromhex("1b700019fa")
PIN5 = bytes.fromhex("1b700119fa")
DLE_DC4 = bytes.fromhex("1014010001")


@pytest.fixture
def settings(tmp_path: Path) -> DrawerSettings:
    return DrawerSettings(
        commands=CommandTable(
            variants=(
                CommandVariant(name="escpos-pin2", frame=PIN2),
                CommandVariant(name="escpos-pin5", frame=PIN5),
                CommandVariant(name="dle-dc4", frame=DLE_DC4),
            )
        ),
        network=NetworkSettings(
            hold_open_s=0,
            preferred_subnets=("192.168.0",),
            well_known_addresses=("192.168.0.100",),
            fallback_addresses=("192.168.0.100", "192.168.1.100"),
        ),
        serial=SerialSettings(
            hold_open_s=0,
            port_heuristics={
                "linux": PortHeuristic(prefixes=("/dev/ttyUSB", "/dev/ttyACM")),
                "win32": PortHeuristic(names=tuple(f"COM{n}" for n in range(1, 10))),
            },
        ),
        diagnostics=DiagnosticsSettings(log_dir=tmp_path / "logs"),
    )
