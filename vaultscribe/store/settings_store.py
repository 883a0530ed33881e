"""Persistent JSON storage for transcriber/editor/pipeline settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from ..settings import AppSettings, EditorSettings, PipelineSettings, TranscriberSettings

LOGGER = logging.getLogger("vaultscribe.settings")

_SECTIONS = {
    "transcriber": TranscriberSettings,
    "editor": EditorSettings,
    "pipeline": PipelineSettings,
}


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._settings = self._load()

    def _load(self) -> AppSettings:
        if not self.path.exists():
            return AppSettings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception as exc:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
        sections: Dict[str, Any] = {}
        for name, model in _SECTIONS.items():
            sections[name] = self._load_section(model, raw.get(name))
        return AppSettings(**sections)

    def _load_section(self, model, values: Any):
        defaults = model()
        if not isinstance(values, dict):
            return defaults
        merged = {key: value for key, value in values.items() if key in model.model_fields}
        try:
            return model.model_validate(merged)
        except ValidationError as exc:
            LOGGER.warning("Invalid %s settings, using defaults: %s", model.__name__, exc)
            return defaults

    def get(self) -> AppSettings:
        return self._settings

    def update(self, section: str, **values: Any) -> AppSettings:
        if section not in _SECTIONS:
            raise KeyError(f"Unknown settings section: {section}")
        current = getattr(self._settings, section)
        data = current.model_dump()
        data.update({key: value for key, value in values.items() if key in data})
        setattr(self._settings, section, _SECTIONS[section].model_validate(data))
        self._persist()
        return self._settings

    def _persist(self) -> None:
        self.path.write_text(self._settings.model_dump_json(indent=2), encoding="utf-8")


__all__ = ["SettingsStore"]
