"""Import Service - Pull county churches from OpenStreetMap.

Queries the Overpass API for places of worship and church buildings inside
the county boundary, maps OSM tags onto church rows and upserts them into
the directory keyed by ``(osm_type, osm_id)``.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from config import COUNTY_NAME, HTTP_TIMEOUT_SECONDS, OVERPASS_ENDPOINT
from faith_finder.errors import FaithFinderError
from faith_finder.services.directory_service import ChurchDirectory

logger = logging.getLogger(__name__)


class ImportServiceError(FaithFinderError):
    """Raised when the map source or the upsert fails."""
    status_code = 500
    default_message = "Import failed"


def build_overpass_query(county: str = COUNTY_NAME) -> str:
    return f"""
[out:json][timeout:90];
area["name"="{county}"]["boundary"="administrative"]["admin_level"="6"]->.a;
(
  nwr(area.a)["amenity"="place_of_worship"];
  nwr(area.a)["building"="church"];
);
out tags center;
"""


def _first(tags: dict[str, str], *keys: str) -> str:
    for key in keys:
        value = (tags.get(key) or "").strip()
        if value:
            return value
    return ""


def is_likely_church(tags: dict[str, str]) -> bool:
    """Christian places of worship and church buildings."""
    religion = (tags.get("religion") or "").lower()
    return (
        (tags.get("amenity") == "place_of_worship" and religion in ("", "christian"))
        or tags.get("building") == "church"
        or tags.get("place_of_worship") == "church"
    )


def build_address(tags: dict[str, str]) -> str:
    parts = [
        tags.get("addr:housenumber"),
        tags.get("addr:street"),
        tags.get("addr:city"),
        tags.get("addr:state"),
        tags.get("addr:postcode"),
    ]
    return " ".join(p.strip() for p in parts if p and p.strip())


def element_to_row(element: dict[str, Any], county: str = COUNTY_NAME) -> dict[str, Any] | None:
    """Map one Overpass element to a church row, or None if it should be skipped."""
    tags = element.get("tags") or {}
    if not tags or not is_likely_church(tags):
        return None
    name = _first(tags, "name", "official_name", "brand")
    if not name:
        return None

    center = element.get("center") or {}
    lat = center.get("lat", element.get("lat"))
    lon = center.get("lon", element.get("lon"))

    return {
        "name": name,
        "denomination": _first(tags, "denomination", "christian:denomination", "religious_order") or None,
        # Size is unknown from OSM; admins fill it in later
        "size": None,
        "location": _first(tags, "addr:city", "addr:place", "is_in:city") or county,
        "address": build_address(tags) or None,
        "description": tags.get("description") or None,
        "website": _first(tags, "contact:website", "website", "url") or None,
        "phone": _first(tags, "contact:phone", "phone") or None,
        "latitude": lat if isinstance(lat, (int, float)) else None,
        "longitude": lon if isinstance(lon, (int, float)) else None,
        "osm_type": element.get("type"),
        "osm_id": element.get("id"),
        "source": "osm",
    }


class ImportService:
    """Service that refreshes the directory from the map data source."""

    def __init__(
        self,
        directory: ChurchDirectory,
        *,
        endpoint: str = OVERPASS_ENDPOINT,
        county: str = COUNTY_NAME,
        session: requests.Session | None = None,
    ):
        self.directory = directory
        self.endpoint = endpoint
        self.county = county
        self.session = session or requests.Session()

    def fetch_elements(self) -> list[dict[str, Any]]:
        try:
            resp = self.session.post(
                self.endpoint,
                data={"data": build_overpass_query(self.county)},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise ImportServiceError("Overpass failed", details=str(e)) from e
        if not resp.ok:
            raise ImportServiceError("Overpass failed", details=resp.text[:1000])
        try:
            return resp.json().get("elements") or []
        except ValueError as e:
            raise ImportServiceError("Overpass failed", details="response was not JSON") from e

    def run(self) -> dict[str, Any]:
        """Import and upsert county churches.

        Returns:
            dict: ``{"ok": True, "imported": n, "upserted": m}``

        Raises:
            ImportServiceError: If the map source or the upsert fails.
        """
        elements = self.fetch_elements()
        rows = [row for row in (element_to_row(el, self.county) for el in elements) if row]
        logger.info("Overpass returned %d elements, %d usable churches", len(elements), len(rows))
        try:
            upserted = self.directory.upsert(rows)
        except FaithFinderError as e:
            raise ImportServiceError("Upsert failed", details=e.message) from e
        return {"ok": True, "imported": len(rows), "upserted": upserted}
