"""Faith Finder church matching package."""

from .errors import FaithFinderError
from .models import MatchResults, MatchSelection, PreferenceQuery
from .services import MatchClient, MatchingService, reconcile

__all__ = [
    "FaithFinderError",
    "MatchResults",
    "MatchSelection",
    "PreferenceQuery",
    "MatchClient",
    "MatchingService",
    "reconcile",
]
