"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import json

import typer

from drawerctl.core.config_loader import load_settings
from drawerctl.core.errors import DrawerctlError
from drawerctl.core.model import DEFAULT_PORT, DrawerOpenRequest
from drawerctl.core.service import DrawerService

app = typer.Typer(help="Open ESC/POS cash drawers over the network or a serial port")

_MODES = {"network": True, "serial": False, "auto": "auto"}


def _build_service() -> DrawerService:
    service = DrawerService()
    for warning in service.load_warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for warning in service.runtime_warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command("open")
def open_till(
    ip: str | None = typer.Option(None, "--ip", help="Printer IP address or hostname"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Printer TCP port"),
    mode: str | None = typer.Option(None, "--mode", help="network, serial or auto"),
    serial_port: str | None = typer.Option(None, "--serial-port", help="Serial device, e.g. COM3 or /dev/ttyUSB0"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Open the cash drawer.

    Without --ip or --mode the serial path is used.
    """
    if mode is not None and mode.lower() not in _MODES:
        typer.echo(f"Error: Unknown mode '{mode}'. Use one of: {', '.join(_MODES)}", err=True)
        raise typer.Exit(code=1)

    try:
        service = _build_service()
        request = DrawerOpenRequest(
            ip_address=ip,
            port=port,
            network_mode=_MODES[mode.lower()] if mode else None,
            port_path=serial_port,
        )
        result = asyncio.run(service.open_till(request))
    except DrawerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    elif result.success:
        typer.echo(result.message)
        typer.echo(f"command={result.command_used} log={result.log_file}")
    else:
        typer.echo(f"Error: {result.message}", err=True)
        typer.echo(f"See {result.log_file} for details", err=True)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("ports")
def list_ports(
    as_json: bool = typer.Option(False, "--json", help="Print the listing as JSON"),
) -> None:
    """List serial devices a drawer could be wired to."""
    try:
        service = _build_service()
        listing = service.list_serial_ports()
    except DrawerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if as_json:
        typer.echo(json.dumps(listing.to_dict(), indent=2))
    elif not listing.available:
        typer.echo(f"Serial access not available: {listing.message}", err=True)
    elif not listing.ports:
        typer.echo("No serial ports found")
    else:
        for port in listing.ports:
            ids = f"{port.vendor_id}:{port.product_id}" if port.vendor_id else "-"
            typer.echo(f"{port.path} {ids} {port.manufacturer or port.description or ''}".rstrip())
    if not listing.available:
        raise typer.Exit(code=1)


@app.command("scan")
def scan_network(
    as_json: bool = typer.Option(False, "--json", help="Print responsive addresses as JSON"),
) -> None:
    """Probe the local network for printers without opening a drawer."""
    try:
        service = _build_service()
        found = asyncio.run(service.scan_network())
    except DrawerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if as_json:
        typer.echo(json.dumps([{"address": c.address, "port": c.port} for c in found], indent=2))
        return
    if not found:
        typer.echo("No printers responded")
        return
    for candidate in found:
        typer.echo(candidate.label)


@app.command("config")
def show_config() -> None:
    """Show the effective command table and timing settings."""
    try:
        loaded = load_settings()
    except DrawerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    settings = loaded.settings
    typer.echo("Commands:")
    for index, command in settings.commands.numbered():
        typer.echo(f"  {index}. {command.name}: {command.describe()}")
    net = settings.network
    typer.echo(
        f"Network: ports={','.join(str(p) for p in net.probe_ports)} "
        f"probe={net.probe_timeout_s:g}s connect={net.connect_timeout_s:g}s hold={net.hold_open_s:g}s"
    )
    typer.echo(f"Serial: rates={','.join(str(r) for r in settings.serial.baud_rates)}")
    typer.echo(f"Log dir: {settings.diagnostics.log_dir}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
