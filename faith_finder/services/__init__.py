"""Service layer - Business logic modules.

Each service module has a clear interface and can be developed/tested independently.
"""

from .directory_service import ChurchDirectory, JsonChurchDirectory, RestChurchDirectory
from .match_client import MatchClient, MatchSession
from .matching_service import MatchingService
from .reconciler import reconcile
from .settings_store import SettingsStore

__all__ = [
    "ChurchDirectory",
    "JsonChurchDirectory",
    "RestChurchDirectory",
    "MatchClient",
    "MatchSession",
    "MatchingService",
    "reconcile",
    "SettingsStore",
]
