"""Configuration loading and validation for drawerctl YAML settings."""

from __future__ import annotations

import ipaddress
import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from drawerctl.core.commands import CommandTable, CommandVariant
from drawerctl.core.errors import ConfigLoadError, ConfigValidationError
from drawerctl.core.model import (
    DiagnosticsSettings,
    DrawerSettings,
    NetworkSettings,
    PortHeuristic,
    SerialSettings,
)

_HEX_RE = re.compile(r"^[0-9a-f]+$")
_SUBNET_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}$")
_MAX_FRAME_BYTES = 16
_MERGED_SECTIONS = ("network", "serial", "diagnostics")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedSettings:
    settings: DrawerSettings
    warnings: tuple[str, ...]
    sources: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("drawerctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def user_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "drawerctl/config.yaml"


def default_log_dir() -> Path:
    xdg_state = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local/state"))
    return xdg_state / "drawerctl/logs"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _normalize_hex(value: str, *, context: str) -> bytes:
    normalized = value.strip().lower().replace(" ", "")
    if len(normalized) == 0:
        raise ConfigValidationError(f"{context} must not be empty")
    if len(normalized) % 2 != 0:
        raise ConfigValidationError(f"{context} must have even-length hex")
    if not _HEX_RE.match(normalized):
        raise ConfigValidationError(f"{context} must contain only [0-9a-f]")
    frame = bytes.fromhex(normalized)
    if len(frame) > _MAX_FRAME_BYTES:
        raise ConfigValidationError(
            f"{context} exceeds max frame size {_MAX_FRAME_BYTES} bytes"
        )
    return frame


def _normalize_subnet(value: str, *, context: str) -> str:
    normalized = value.strip().rstrip(".")
    if not _SUBNET_RE.match(normalized) or any(int(part) > 255 for part in normalized.split(".")):
        raise ConfigValidationError(f"{context} must be a dotted /24 prefix such as '192.168.0'")
    return normalized


def _normalize_address(value: str, *, context: str) -> str:
    try:
        return str(ipaddress.IPv4Address(value.strip()))
    except ValueError as exc:
        raise ConfigValidationError(f"{context} must be an IPv4 address: {exc}") from exc


def _build_heuristic(platform: str, entry: dict[str, Any]) -> PortHeuristic:
    names = list(entry.get("names", []))
    numbered = entry.get("numbered")
    if numbered:
        if numbered["last"] < numbered["first"]:
            raise ConfigValidationError(
                f"serial.port_heuristics.{platform}.numbered.last must be >= first"
            )
        names.extend(
            f"{numbered['prefix']}{number}"
            for number in range(numbered["first"], numbered["last"] + 1)
        )
    return PortHeuristic(names=tuple(names), prefixes=tuple(entry.get("prefixes", [])))


def _build_settings(doc: dict[str, Any], sources: str) -> DrawerSettings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {sources}{where}: {exc.message}") from exc

    variants: list[CommandVariant] = []
    seen_names: set[str] = set()
    for entry in doc["commands"]:
        if entry["name"] in seen_names:
            raise ConfigValidationError(f"Duplicate command name '{entry['name']}' in {sources}")
        seen_names.add(entry["name"])
        variants.append(
            CommandVariant(
                name=entry["name"],
                frame=_normalize_hex(entry["hex"], context=f"commands.{entry['name']}"),
            )
        )

    net = doc["network"]
    network = NetworkSettings(
        default_port=int(net["default_port"]),
        probe_ports=tuple(int(p) for p in net["probe_ports"]),
        probe_timeout_s=float(net.get("probe_timeout_s", 0.2)),
        connect_timeout_s=float(net.get("connect_timeout_s", 5.0)),
        hold_open_s=float(net.get("hold_open_s", 1.0)),
        max_candidates=int(net.get("max_candidates", 30)),
        preferred_subnets=tuple(
            _normalize_subnet(s, context="network.preferred_subnets")
            for s in net.get("preferred_subnets", [])
        ),
        well_known_addresses=tuple(
            _normalize_address(a, context="network.well_known_addresses")
            for a in net.get("well_known_addresses", [])
        ),
        fallback_addresses=tuple(
            _normalize_address(a, context="network.fallback_addresses")
            for a in net.get("fallback_addresses", [])
        ),
    )

    ser = doc["serial"]
    serial = SerialSettings(
        baud_rates=tuple(int(b) for b in ser["baud_rates"]),
        open_timeout_s=float(ser.get("open_timeout_s", 10.0)),
        write_timeout_s=float(ser.get("write_timeout_s", 5.0)),
        hold_open_s=float(ser.get("hold_open_s", 1.0)),
        port_heuristics={
            platform: _build_heuristic(platform, entry)
            for platform, entry in ser.get("port_heuristics", {}).items()
        },
    )

    diag = doc["diagnostics"]
    log_dir = Path(diag["log_dir"]).expanduser() if "log_dir" in diag else default_log_dir()
    diagnostics = DiagnosticsSettings(
        log_dir=log_dir,
        file_prefix=diag.get("file_prefix", "drawer"),
    )

    return DrawerSettings(
        commands=CommandTable(variants=tuple(variants)),
        network=network,
        serial=serial,
        diagnostics=diagnostics,
    )


def _merge(base: dict[str, Any], override: dict[str, Any], source: Path) -> tuple[dict[str, Any], list[str]]:
    merged = dict(base)
    warnings: list[str] = []
    for key, value in override.items():
        if key in _MERGED_SECTIONS and isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = {**base[key], **value}
        else:
            merged[key] = value
        if key in base:
            warning = f"User config {source} overrides packaged '{key}' settings"
            LOGGER.warning(warning)
            warnings.append(warning)
    return merged, warnings


def load_settings(config_path: Path | None = None) -> LoadedSettings:
    """Load packaged defaults merged with the user's config file, if any."""
    packaged = resources.files("drawerctl.config").joinpath("defaults.yaml")
    doc = _read_yaml(packaged)
    sources = [str(packaged)]
    warnings: list[str] = []

    user_path = config_path or user_config_path()
    if config_path is not None and not config_path.is_file():
        raise ConfigLoadError(f"Config file {config_path} does not exist")
    if user_path.is_file():
        doc, warnings = _merge(doc, _read_yaml(user_path), user_path)
        sources.append(str(user_path))

    settings = _build_settings(doc, " + ".join(sources))
    return LoadedSettings(settings=settings, warnings=tuple(warnings), sources=tuple(sources))
