"""Locally persisted visitor settings."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Literal

from faith_finder.models.options import NO_PREFERENCE

AppTheme = Literal["system", "light", "dark"]
THEMES = ("system", "light", "dark")


@dataclass(frozen=True)
class UserSettings:
    """Defaults used to prefill the preference form."""
    default_location: str = "State College"
    default_size: str = ""
    default_denomination: str = NO_PREFERENCE
    theme: AppTheme = "system"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        """Create from stored data; unknown keys and bad values fall back to defaults."""
        known = {f.name for f in fields(cls)}
        values = {
            key: value
            for key, value in data.items()
            if key in known and isinstance(value, str)
        }
        if values.get("theme") not in THEMES:
            values.pop("theme", None)
        return cls(**values)

    def merged(self, **patch: Any) -> "UserSettings":
        return UserSettings.from_dict({**self.to_dict(), **patch})


USER_SETTINGS_DEFAULTS = UserSettings()
