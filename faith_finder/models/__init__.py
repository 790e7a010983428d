"""Data models - Pure data structures with no business logic."""

from .church import Church, CHURCH_SIZE_VALUES
from .match import ChurchMatch, MatchPick, MatchResults, MatchSelection
from .options import NO_PREFERENCE, Option
from .preferences import PreferenceQuery
from .settings import USER_SETTINGS_DEFAULTS, UserSettings

__all__ = [
    "Church",
    "CHURCH_SIZE_VALUES",
    "ChurchMatch",
    "MatchPick",
    "MatchResults",
    "MatchSelection",
    "NO_PREFERENCE",
    "Option",
    "PreferenceQuery",
    "UserSettings",
    "USER_SETTINGS_DEFAULTS",
]
