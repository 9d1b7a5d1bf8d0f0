"""Structured JSONL runtime logging for branchdiff.

Each event is one JSON object per line holding ``ts``, ``level``, ``event`` and
``pid``, then any fields bound with ``RuntimeLogger.bind``, then the keyword
fields of the call itself.
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from branchdiff.paths import log_dir

LogLevel = Literal["off", "error", "warning", "info", "debug"]

LOG_LEVELS: tuple[str, ...] = ("off", "error", "warning", "info", "debug")

ENV_LEVEL = "BRANCHDIFF_LOG_LEVEL"
ENV_FILE = "BRANCHDIFF_LOG_FILE"

# debug=0 ... error=3; "off" is handled separately.
_SEVERITY: dict[str, int] = {name: rank for rank, name in enumerate(reversed(LOG_LEVELS[1:]))}

_ALIASES: dict[str, str] = {
    "warn": "warning",
    "err": "error",
    "none": "off",
    "disabled": "off",
    "0": "off",
}

_runtime_logger: "RuntimeLogger | None" = None


def parse_level(value: str | None, default: LogLevel = "warning") -> LogLevel:
    if not value:
        return default
    normalized = value.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in LOG_LEVELS:
        return default
    return normalized  # type: ignore[return-value]


def resolve_log_file(path: str | Path | None) -> Path:
    if path is None:
        return log_dir() / "branchdiff.runtime.jsonl"
    return Path(path).expanduser().resolve()


@dataclass(slots=True)
class _Sink:
    path: Path
    lock: threading.Lock = field(default_factory=threading.Lock)

    def append(self, line: str) -> None:
        with self.lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")


@dataclass(slots=True)
class RuntimeLogger:
    level: LogLevel
    sink: _Sink
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def sink_path(self) -> Path:
        return self.sink.path

    def enabled(self, level: str) -> bool:
        if self.level == "off":
            return False
        return _SEVERITY.get(level, 0) >= _SEVERITY[self.level]

    def bind(self, **context: Any) -> "RuntimeLogger":
        """Return a logger on the same sink that adds ``context`` to every event."""
        return RuntimeLogger(level=self.level, sink=self.sink, context={**self.context, **context})

    def log(self, level: str, event: str, **fields: Any) -> None:
        if not self.enabled(level):
            return
        payload = {
            "ts": datetime.now(UTC).isoformat(),
            "level": level,
            "event": event,
            "pid": os.getpid(),
            **self.context,
            **fields,
        }
        self.sink.append(json.dumps(payload, sort_keys=True, default=str))

    def debug(self, event: str, **fields: Any) -> None:
        self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log("error", event, **fields)


def configure_runtime_logging(
    *,
    level: str | None = None,
    log_file: str | Path | None = None,
) -> RuntimeLogger:
    """Install the process-wide logger; explicit arguments beat the environment."""
    global _runtime_logger

    effective_level = parse_level(level or os.getenv(ENV_LEVEL))
    sink = _Sink(resolve_log_file(log_file or os.getenv(ENV_FILE)))
    _runtime_logger = RuntimeLogger(level=effective_level, sink=sink)
    _runtime_logger.info(
        "logging.configured",
        configured_level=effective_level,
        sink_path=str(sink.path),
    )
    return _runtime_logger


def get_runtime_logger() -> RuntimeLogger:
    global _runtime_logger
    if _runtime_logger is None:
        _runtime_logger = configure_runtime_logging()
    return _runtime_logger
