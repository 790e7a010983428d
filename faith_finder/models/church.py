"""Church directory data models.

Pure data structures with no business logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CHURCH_SIZE_VALUES = ("small", "medium", "large")

TEXT_FIELDS = ("name", "denomination", "size", "location", "address", "phone", "website", "description")


def _optional_float(value: Any) -> float | None:
    # bool is an int subclass; never treat it as a coordinate
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def invalid_fields(data: dict[str, Any]) -> list[str]:
    """Names of fields whose values have the wrong JSON type.

    The id must be a string or an integer; text fields must be strings or null.
    """
    bad = []
    church_id = data.get("id")
    if church_id is not None and (isinstance(church_id, bool) or not isinstance(church_id, (str, int))):
        bad.append("id")
    bad.extend(
        name for name in TEXT_FIELDS
        if data.get(name) is not None and not isinstance(data.get(name), str)
    )
    return bad


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Church:
    """A single directory entry eligible for matching."""
    id: str
    name: str = ""
    denomination: str = ""
    size: str = ""
    location: str = ""
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    website: str | None = None
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    source: str | None = None
    osm_type: str | None = None
    osm_id: int | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "denomination": self.denomination,
            "size": self.size,
            "location": self.location,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "phone": self.phone,
            "website": self.website,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "source": self.source,
            "osm_type": self.osm_type,
            "osm_id": self.osm_id,
        }

    def to_prompt_dict(self) -> dict[str, Any]:
        """Fields the model needs to judge fit; bookkeeping is left out."""
        data = {
            "id": self.id,
            "name": self.name,
            "denomination": self.denomination,
            "size": self.size,
            "location": self.location,
            "address": self.address,
        }
        for key in ("description", "website", "phone"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Church":
        """Create from dictionary."""
        osm_id = data.get("osm_id")
        return cls(
            id="" if data.get("id") is None else str(data["id"]),
            name=_text(data.get("name")),
            denomination=_text(data.get("denomination")),
            size=_text(data.get("size")).lower(),
            location=_text(data.get("location")),
            address=_text(data.get("address")),
            latitude=_optional_float(data.get("latitude")),
            longitude=_optional_float(data.get("longitude")),
            phone=_optional_str(data.get("phone")),
            website=_optional_str(data.get("website")),
            description=_optional_str(data.get("description")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            source=data.get("source"),
            osm_type=data.get("osm_type"),
            osm_id=int(osm_id) if isinstance(osm_id, (int, str)) and str(osm_id).isdigit() else None,
        )
