"""Directory Service - Read and maintain the church directory.

This module handles:
- Listing churches, optionally narrowed to a location
- Admin CRUD on church records
- Upserting imported records keyed by their map source identity

Interface Contract:
- list(location=None) -> list[Church]   (ordered by name)
- get(church_id) -> Church               (NotFound if absent)
- add(data) / update(church_id, patch) / delete(church_id)
- upsert(rows) -> int                    (number of rows written)
- Storage failures raise DirectoryServiceError

Two backends: a JSON file for local use and tests, and a PostgREST-style
managed datastore reached over HTTP.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

import requests

from config import DIRECTORY_KEY, DIRECTORY_PATH, DIRECTORY_URL, HTTP_TIMEOUT_SECONDS
from faith_finder.errors import FaithFinderError, InvalidInput, NotFound
from faith_finder.models import CHURCH_SIZE_VALUES, Church
from faith_finder.models.church import invalid_fields
from faith_finder.models.options import COUNTY_WIDE_LOCATION, is_no_preference

logger = logging.getLogger(__name__)

# Fields an admin may write; id and timestamps are managed here
WRITABLE_FIELDS = (
    "name",
    "denomination",
    "size",
    "location",
    "address",
    "latitude",
    "longitude",
    "phone",
    "website",
    "description",
    "source",
    "osm_type",
    "osm_id",
)


class DirectoryServiceError(FaithFinderError):
    """Raised when the directory store fails."""
    status_code = 502
    default_message = "Failed to load churches"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def wants_all_locations(location: str | None) -> bool:
    return is_no_preference(location) or location.strip().lower() == COUNTY_WIDE_LOCATION.lower()


def matches_location(church: Church, location: str | None) -> bool:
    """Case-insensitive equality or substring match on the church's location."""
    if wants_all_locations(location):
        return True
    needle = location.strip().lower()
    return needle in church.location.lower()


def clean_fields(data: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Keep writable fields and check the few rules the directory enforces.

    Raises:
        InvalidInput: If a new church has no name, a text field is not a
            string, or size is not a known size.
    """
    if not isinstance(data, dict):
        raise InvalidInput("Invalid input: expected a JSON object.")
    cleaned = {key: data[key] for key in WRITABLE_FIELDS if key in data}
    bad = invalid_fields(cleaned)
    if bad:
        raise InvalidInput("Invalid input: church fields have the wrong type.", details={"fields": bad})
    if not partial and not (cleaned.get("name") or "").strip():
        raise InvalidInput("Invalid input: name is required.", details={"missing": ["name"]})
    size = cleaned.get("size")
    if size not in (None, "") and str(size).lower() not in CHURCH_SIZE_VALUES:
        raise InvalidInput(
            f"Invalid input: size must be one of {', '.join(CHURCH_SIZE_VALUES)}.",
            details={"size": size},
        )
    return cleaned


class ChurchDirectory(ABC):
    """Abstract church directory."""

    @abstractmethod
    def list(self, location: str | None = None) -> list[Church]:
        pass

    @abstractmethod
    def get(self, church_id: str) -> Church:
        pass

    @abstractmethod
    def add(self, data: dict[str, Any]) -> Church:
        pass

    @abstractmethod
    def update(self, church_id: str, patch: dict[str, Any]) -> Church:
        pass

    @abstractmethod
    def delete(self, church_id: str) -> None:
        pass

    @abstractmethod
    def upsert(self, rows: list[dict[str, Any]]) -> int:
        pass


class JsonChurchDirectory(ChurchDirectory):
    """Church directory stored in a single JSON file."""

    def __init__(self, path: Path | str = DIRECTORY_PATH):
        self.path = Path(path)
        self._lock = Lock()

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as e:
            raise DirectoryServiceError(details=str(e)) from e
        if not isinstance(data, list):
            raise DirectoryServiceError(details=f"{self.path} does not hold a list")
        return data

    def _write(self, rows: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def list(self, location: str | None = None) -> list[Church]:
        with self._lock:
            churches = [Church.from_dict(row) for row in self._read()]
        matched = [c for c in churches if matches_location(c, location)]
        return sorted(matched, key=lambda c: c.name.lower())

    def get(self, church_id: str) -> Church:
        with self._lock:
            for row in self._read():
                if str(row.get("id")) == church_id:
                    return Church.from_dict(row)
        raise NotFound("Church not found", details={"id": church_id})

    def add(self, data: dict[str, Any]) -> Church:
        fields = clean_fields(data)
        now = _now()
        row = {**fields, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        with self._lock:
            rows = self._read()
            rows.append(row)
            self._write(rows)
        logger.info("Added church %s (%s)", row["id"], row.get("name"))
        return Church.from_dict(row)

    def update(self, church_id: str, patch: dict[str, Any]) -> Church:
        fields = clean_fields(patch, partial=True)
        with self._lock:
            rows = self._read()
            for row in rows:
                if str(row.get("id")) == church_id:
                    row.update(fields)
                    row["updated_at"] = _now()
                    self._write(rows)
                    return Church.from_dict(row)
        raise NotFound("Church not found", details={"id": church_id})

    def delete(self, church_id: str) -> None:
        with self._lock:
            rows = self._read()
            kept = [row for row in rows if str(row.get("id")) != church_id]
            if len(kept) == len(rows):
                raise NotFound("Church not found", details={"id": church_id})
            self._write(kept)
        logger.info("Deleted church %s", church_id)

    def upsert(self, rows: list[dict[str, Any]]) -> int:
        now = _now()
        written = 0
        with self._lock:
            existing = self._read()
            by_key = {
                (row.get("osm_type"), row.get("osm_id")): row
                for row in existing
                if row.get("osm_type") and row.get("osm_id") is not None
            }
            for incoming in rows:
                fields = clean_fields(incoming)
                key = (fields.get("osm_type"), fields.get("osm_id"))
                current = by_key.get(key) if key[0] and key[1] is not None else None
                if current is not None:
                    current.update(fields)
                    current["updated_at"] = now
                else:
                    row = {**fields, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
                    existing.append(row)
                    if key[0] and key[1] is not None:
                        by_key[key] = row
                written += 1
            self._write(existing)
        return written


class RestChurchDirectory(ChurchDirectory):
    """Church directory in a managed PostgREST-style datastore."""

    def __init__(
        self,
        base_url: str = DIRECTORY_URL,
        api_key: str = DIRECTORY_KEY,
        *,
        table: str = "churches",
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, *, params=None, json_body=None, prefer: str | None = None):
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self.session.request(
                method,
                self.endpoint,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DirectoryServiceError(details=str(e)) from e
        if not resp.ok:
            logger.error("Directory %s failed: HTTP %s %s", method, resp.status_code, resp.text[:500])
            raise DirectoryServiceError(details=resp.text[:500])
        return resp.json() if resp.text else []

    def list(self, location: str | None = None) -> list[Church]:
        params = {"select": "*", "order": "name.asc"}
        if not wants_all_locations(location):
            params["location"] = f"ilike.*{location.strip()}*"
        return [Church.from_dict(row) for row in self._request("GET", params=params)]

    def get(self, church_id: str) -> Church:
        rows = self._request("GET", params={"select": "*", "id": f"eq.{church_id}"})
        if not rows:
            raise NotFound("Church not found", details={"id": church_id})
        return Church.from_dict(rows[0])

    def add(self, data: dict[str, Any]) -> Church:
        rows = self._request("POST", json_body=[clean_fields(data)], prefer="return=representation")
        return Church.from_dict(rows[0])

    def update(self, church_id: str, patch: dict[str, Any]) -> Church:
        rows = self._request(
            "PATCH",
            params={"id": f"eq.{church_id}"},
            json_body=clean_fields(patch, partial=True),
            prefer="return=representation",
        )
        if not rows:
            raise NotFound("Church not found", details={"id": church_id})
        return Church.from_dict(rows[0])

    def delete(self, church_id: str) -> None:
        rows = self._request("DELETE", params={"id": f"eq.{church_id}"}, prefer="return=representation")
        if not rows:
            raise NotFound("Church not found", details={"id": church_id})

    def upsert(self, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0
        written = self._request(
            "POST",
            params={"on_conflict": "osm_type,osm_id", "select": "id"},
            json_body=[clean_fields(row) for row in rows],
            prefer="resolution=merge-duplicates,return=representation",
        )
        return len(written)


def default_directory() -> ChurchDirectory:
    """Managed datastore when configured, otherwise the local JSON file."""
    if DIRECTORY_URL:
        return RestChurchDirectory()
    return JsonChurchDirectory()
