"""Error taxonomy shared by the matching service and its clients.

Every error carries an HTTP status and renders as ``{"error": ..., "details": ...}``
so the Flask layer and the HTTP client agree on one shape.
"""

from __future__ import annotations

from typing import Any


class FaithFinderError(Exception):
    """Base class for all application errors."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire error body."""
        data: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            data["details"] = self.details
        return data


class InvalidInput(FaithFinderError):
    """The request is missing required fields or carries bad values."""
    status_code = 400
    default_message = "Invalid input: size, location, and churches are required."


class EmptyDirectory(FaithFinderError):
    """No churches are listed for the chosen location."""
    status_code = 404
    default_message = "No churches found for that location. Try a broader area."


class UpstreamUnavailable(FaithFinderError):
    """The generation backend failed, timed out or refused the call."""
    status_code = 502
    default_message = "Model request failed"


class MalformedModelOutput(FaithFinderError):
    """The backend answered but broke the schema or picked unknown churches."""
    status_code = 502
    default_message = "Model returned invalid JSON"


class MatchingUnavailable(FaithFinderError):
    """The matching service could not be reached or gave an unusable answer."""
    status_code = 503
    default_message = "Failed to find matches"

    def __init__(self, message: str | None = None, *, details: Any = None, status: int | None = None):
        super().__init__(message, details=details)
        self.status = status


class ReconciliationError(FaithFinderError):
    """The selection points at a church missing from the loaded list."""
    default_message = "The matcher selected a church that wasn't found in the loaded list."


class MatchInProgress(FaithFinderError):
    """A match request is already outstanding for this session."""
    status_code = 409
    default_message = "A search is already running"


class StaleResponse(FaithFinderError):
    """A response arrived for a submission that has since been replaced."""
    status_code = 409
    default_message = "This search was replaced by a newer one"


class NotFound(FaithFinderError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(FaithFinderError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(FaithFinderError):
    status_code = 403
    default_message = "Access denied"
