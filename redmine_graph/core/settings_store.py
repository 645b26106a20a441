"""Load and save chart settings and presets as YAML (with fallbacks)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .config import PRESETS_FILE_NAME, SETTINGS_DIR_NAME, SETTINGS_FILE_TEMPLATE, SETTINGS_VERSION
from .mappers import preset_from_dict, preset_to_dict, settings_from_dict, settings_to_dict
from .models import Preset, UserSettings

logger = logging.getLogger(__name__)


def default_settings_dir() -> Path:
    return Path.home() / SETTINGS_DIR_NAME


class SettingsStore:
    """Per-project settings plus a shared preset list, one YAML file each.

    Storage problems never propagate: reads fall back to None/[] and writes
    are dropped with a warning.
    """

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir) if base_dir is not None else default_settings_dir()

    def _settings_path(self, project_id: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in project_id) or "default"
        return self.base_dir / SETTINGS_FILE_TEMPLATE.format(project=safe)

    def _read_yaml(self, path: Path):
        if not path.exists():
            return None
        try:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def _write_yaml(self, path: Path, data) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write %s: %s", path, exc)

    def load_settings(self, project_id: str) -> UserSettings | None:
        data = self._read_yaml(self._settings_path(project_id))
        if not isinstance(data, dict) or data.get("version") != SETTINGS_VERSION:
            return None
        try:
            return settings_from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding stored settings for %s: %s", project_id, exc)
            return None

    def save_settings(self, project_id: str, settings: UserSettings) -> None:
        self._write_yaml(self._settings_path(project_id), settings_to_dict(settings))

    def load_presets(self) -> list[Preset]:
        data = self._read_yaml(self.base_dir / PRESETS_FILE_NAME)
        if not isinstance(data, list):
            return []
        presets: list[Preset] = []
        for item in data:
            try:
                presets.append(preset_from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed preset: %s", exc)
        return presets

    def save_presets(self, presets: list[Preset]) -> None:
        self._write_yaml(self.base_dir / PRESETS_FILE_NAME, [preset_to_dict(p) for p in presets])


def load_team_presets(raw: str | None) -> list[Preset]:
    """Parse admin-defined shared presets from a JSON string; invalid input yields []."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Ignoring team presets: %s", exc)
        return []
    if not isinstance(data, list):
        return []
    presets: list[Preset] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("name"):
            continue
        try:
            presets.append(preset_from_dict({"id": f"team-{idx}", **item}))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed team preset %r: %s", item.get("name"), exc)
    return presets
