"""Settings Store - Load and save the visitor's last-used defaults.

Settings live in a small JSON file under a versioned key. They are read once
at session start and passed explicitly to whatever builds the preference form.

Interface Contract:
- load() -> UserSettings   (defaults when missing or unreadable)
- save(settings) -> None
- update(**patch) -> UserSettings
- reset() -> UserSettings
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from config import SETTINGS_PATH
from faith_finder.models import USER_SETTINGS_DEFAULTS, UserSettings

logger = logging.getLogger(__name__)

STORAGE_KEY = "FAITH_FINDER_SETTINGS_V1"


class SettingsStore:
    """JSON-file backed store for ``UserSettings``."""

    def __init__(self, path: Path | str = SETTINGS_PATH):
        self.path = Path(path)

    def load(self) -> UserSettings:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return USER_SETTINGS_DEFAULTS
        except OSError as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return USER_SETTINGS_DEFAULTS

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable settings file %s", self.path)
            return USER_SETTINGS_DEFAULTS

        stored = data.get(STORAGE_KEY) if isinstance(data, dict) else None
        if not isinstance(stored, dict):
            return USER_SETTINGS_DEFAULTS
        return UserSettings.from_dict(stored)

    def save(self, settings: UserSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({STORAGE_KEY: settings.to_dict()}, indent=2),
            encoding="utf-8",
        )

    def update(self, **patch) -> UserSettings:
        settings = self.load().merged(**patch)
        self.save(settings)
        return settings

    def reset(self) -> UserSettings:
        self.save(USER_SETTINGS_DEFAULTS)
        return USER_SETTINGS_DEFAULTS
