"""Match Client - Run one church search from the visitor's side.

This module handles:
- Fetching candidate churches for the chosen location
- Calling the matching service over HTTP
- Reconciling the returned identifiers with the loaded churches
- Guarding against overlapping submissions and stale responses

Interface Contract:
- MatchClient.find_matches(preferences) -> MatchResults
- MatchSession.submit(preferences) -> MatchResults
- Raises EmptyDirectory, MatchingUnavailable or ReconciliationError;
  nothing is persisted when a step fails
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

import requests

from config import FUNCTIONS_BASE_URL, HTTP_TIMEOUT_SECONDS
from faith_finder.errors import (
    EmptyDirectory,
    MatchInProgress,
    MatchingUnavailable,
    StaleResponse,
)
from faith_finder.models import Church, MatchResults, MatchSelection, PreferenceQuery
from faith_finder.services.directory_service import ChurchDirectory
from faith_finder.services.reconciler import reconcile

logger = logging.getLogger(__name__)

MATCH_FUNCTION = "match-church"


class MatchClient:
    """Client that turns preferences into reconciled match results."""

    def __init__(
        self,
        directory: ChurchDirectory,
        *,
        base_url: str = FUNCTIONS_BASE_URL,
        access_token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.directory = directory
        self.url = f"{base_url.rstrip('/')}/functions/v1/{MATCH_FUNCTION}"
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def find_matches(self, preferences: PreferenceQuery) -> MatchResults:
        """Fetch candidates, ask the matching service, reconcile.

        Args:
            preferences: Validated preferences.

        Returns:
            MatchResults: Best match plus up to two runner-ups.

        Raises:
            EmptyDirectory: If no churches are listed for the location.
            MatchingUnavailable: If the matching service fails in any way.
            ReconciliationError: If the service picked an unknown church.
        """
        candidates = self.fetch_candidates(preferences.location)
        selection = self.request_selection(preferences, candidates)
        return reconcile(selection, candidates)

    def fetch_candidates(self, location: str) -> list[Church]:
        candidates = self.directory.list(location=location)
        if not candidates:
            raise EmptyDirectory(details={"location": location})
        logger.info("Loaded %d candidate churches for %s", len(candidates), location)
        return candidates

    def build_request(self, preferences: PreferenceQuery, candidates: list[Church]) -> dict[str, Any]:
        """Request body for the matching service."""
        return {
            **preferences.to_payload(),
            "churches": [church.to_dict() for church in candidates],
        }

    def request_selection(
        self,
        preferences: PreferenceQuery,
        candidates: list[Church],
    ) -> MatchSelection:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            resp = self.session.post(
                self.url,
                json=self.build_request(preferences, candidates),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Matching service unreachable: %s", e)
            raise MatchingUnavailable(details=str(e)) from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.ok:
            error = body.get("error") if isinstance(body, dict) else None
            logger.error("Matching service returned HTTP %s: %s", resp.status_code, error)
            raise MatchingUnavailable(
                error or f"Request failed ({resp.status_code})",
                details=body.get("details") if isinstance(body, dict) else None,
                status=resp.status_code,
            )

        try:
            return MatchSelection.from_dict(body)
        except ValueError as e:
            logger.error("Matching service sent a malformed body: %s", e)
            raise MatchingUnavailable(details=str(e), status=resp.status_code) from e


class MatchSession:
    """One visitor's search state: at most one request in flight.

    Each submission takes a sequence token; a result whose token is no longer
    current is discarded rather than returned.
    """

    def __init__(self, client: MatchClient):
        self.client = client
        self._lock = Lock()
        self._sequence = 0
        self._in_flight = False
        self.results: MatchResults | None = None
        self.last_preferences: PreferenceQuery | None = None

    @property
    def is_searching(self) -> bool:
        return self._in_flight

    def submit(self, preferences: PreferenceQuery) -> MatchResults:
        """Run a search, keeping the submitted preferences on failure.

        Raises:
            MatchInProgress: If another submission is still outstanding.
            StaleResponse: If the session was reset while this one ran.
        """
        with self._lock:
            if self._in_flight:
                raise MatchInProgress()
            self._in_flight = True
            self._sequence += 1
            token = self._sequence
            self.last_preferences = preferences

        try:
            results = self.client.find_matches(preferences)
        finally:
            with self._lock:
                if token == self._sequence:
                    self._in_flight = False

        with self._lock:
            if token != self._sequence:
                logger.info("Discarding stale results for submission %d", token)
                raise StaleResponse()
            self.results = results
        return results

    def reset(self) -> None:
        """Start a new search; any outstanding response becomes stale."""
        with self._lock:
            self._sequence += 1
            self._in_flight = False
            self.results = None
