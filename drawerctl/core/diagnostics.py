"""Append-only, per-day diagnostics log for drawer attempts."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

from drawerctl.core.model import DiagnosticsSettings, LogEntry

LOGGER = logging.getLogger(__name__)

_LEVELS = {"INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}


def _local_now() -> datetime:
    return datetime.now().astimezone()


class DiagnosticsSink:
    """Writes one line per entry to `<log_dir>/<prefix>-YYYY-MM-DD.log`.

    Each entry is written with a single append so lines from concurrent
    invocations never interleave. Write failures are reported through the
    module logger and never raised to the caller.
    """

    def __init__(
        self,
        settings: DiagnosticsSettings,
        *,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.log_dir = settings.log_dir
        self.file_prefix = settings.file_prefix
        self._clock = clock

    def path_for(self, day: date) -> Path:
        return self.log_dir / f"{self.file_prefix}-{day.isoformat()}.log"

    @property
    def current_path(self) -> Path:
        return self.path_for(self._clock().date())

    def info(self, message: str, payload: Mapping[str, Any] | None = None) -> LogEntry:
        return self.write("INFO", message, payload)

    def warn(self, message: str, payload: Mapping[str, Any] | None = None) -> LogEntry:
        return self.write("WARN", message, payload)

    def error(self, message: str, payload: Mapping[str, Any] | None = None) -> LogEntry:
        return self.write("ERROR", message, payload)

    def write(
        self,
        level: Literal["INFO", "WARN", "ERROR"],
        message: str,
        payload: Mapping[str, Any] | None = None,
    ) -> LogEntry:
        entry = LogEntry(timestamp=self._clock(), level=level, message=message, payload=payload)
        LOGGER.log(_LEVELS[level], "%s%s", message, f" {dict(payload)}" if payload else "")

        path = self.path_for(entry.timestamp.date())
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(entry.format())
        except OSError as exc:
            LOGGER.warning("Could not append to diagnostics log %s: %s", path, exc)
        return entry
