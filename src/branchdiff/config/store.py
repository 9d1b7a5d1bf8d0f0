"""Persist :class:`AppSettings` as a JSON file under the user config dir."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from branchdiff.config.models import AppSettings
from branchdiff.paths import settings_path
from branchdiff.runtime_logging import get_runtime_logger


def _assign(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    section: Any = data
    for name in parents:
        section = section.get(name) if isinstance(section, dict) else None
    if not isinstance(section, dict) or leaf not in section:
        raise KeyError(f"Unknown setting path: {dotted_key}")
    section[leaf] = value


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or settings_path()
        self.logger = get_runtime_logger().bind(component="settings")

    def load(self) -> AppSettings:
        """Read settings, writing defaults when the file is missing or unusable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.logger.info("settings.created", path=str(self.path))
            return self._reset()

        try:
            return AppSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            backup = self.path.with_suffix(".corrupt.json")
            backup.write_text(raw, encoding="utf-8")
            self.logger.warning("settings.corrupt", path=str(self.path), backup=str(backup), error=str(exc))
            return self._reset()

    def save(self, settings: AppSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        body = json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True)
        self.path.write_text(body + "\n", encoding="utf-8")

    def update(self, dotted_key: str, value: Any) -> AppSettings:
        """Set one nested value such as ``"diff.inline_editing"`` and persist it."""
        data = self.load().model_dump()
        _assign(data, dotted_key, value)
        updated = AppSettings.model_validate(data)
        self.save(updated)
        self.logger.debug("settings.updated", key=dotted_key, value=value)
        return updated

    def _reset(self) -> AppSettings:
        settings = AppSettings()
        self.save(settings)
        return settings
