"""Visitor preference model.

``PreferenceQuery.from_form`` is the single construction path for preferences,
used by the CLI form, the web form and the matching service alike. It accepts
both the wire names (``worshipStyle``) and Python names (``worship_style``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field as dataclass_field
from typing import TYPE_CHECKING, Any

from faith_finder.errors import InvalidInput
from faith_finder.models.church import CHURCH_SIZE_VALUES
from faith_finder.models.options import (
    CHURCH_SIZES,
    NO_PREFERENCE,
    NO_PREFERENCE_LABEL,
    PRIORITY_OPTIONS,
    WORSHIP_STYLES,
    is_no_preference,
    label_for,
)

if TYPE_CHECKING:
    from faith_finder.models.settings import UserSettings


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _choice(value: Any) -> str:
    if is_no_preference(value):
        return NO_PREFERENCE
    return str(value).strip()


def _distance(value: Any) -> str:
    if is_no_preference(value):
        return NO_PREFERENCE
    text = str(value).strip().lower().removesuffix("miles").removesuffix("mi").strip()
    try:
        miles = float(text)
    except ValueError:
        raise InvalidInput(
            "Invalid input: distance must be a number of miles.",
            details={"distance": value},
        ) from None
    if not math.isfinite(miles) or miles <= 0:
        raise InvalidInput(
            "Invalid input: distance must be a positive number of miles.",
            details={"distance": value},
        )
    return str(int(miles)) if miles.is_integer() else str(miles)


def _priorities(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise InvalidInput(
            "Invalid input: priorities must be a list.",
            details={"priorities": value},
        )
    cleaned = {str(item).strip() for item in value if str(item).strip()}
    return sorted(cleaned)


@dataclass
class PreferenceQuery:
    """A visitor's structured search criteria."""
    size: str
    location: str
    denomination: str = NO_PREFERENCE
    worship_style: str = NO_PREFERENCE
    distance: str = NO_PREFERENCE
    priorities: list[str] = dataclass_field(default_factory=list)
    additional_info: str = ""

    @classmethod
    def from_form(
        cls,
        data: dict[str, Any],
        defaults: "UserSettings | None" = None,
    ) -> "PreferenceQuery":
        """Build and validate preferences from raw form or request data.

        Args:
            data: Raw field values. Missing optional fields mean "no preference".
            defaults: Saved settings used to prefill missing denomination,
                size and location.

        Returns:
            PreferenceQuery: Normalized preferences.

        Raises:
            InvalidInput: If size or location is missing, size is not one of
                the known sizes, or an optional field has an unusable value.
        """
        if not isinstance(data, dict):
            raise InvalidInput("Invalid input: expected a JSON object.")

        size = _pick(data, "size")
        location = _pick(data, "location")
        denomination = _pick(data, "denomination")
        if defaults is not None:
            size = size if size not in (None, "") else defaults.default_size
            location = location if location not in (None, "") else defaults.default_location
            if denomination in (None, ""):
                denomination = defaults.default_denomination

        size = (str(size).strip().lower() if size is not None else "")
        location = (str(location).strip() if location is not None else "")

        missing = [name for name, value in (("size", size), ("location", location)) if not value]
        if missing:
            raise InvalidInput(
                "Invalid input: size and location are required.",
                details={"missing": missing},
            )
        if size not in CHURCH_SIZE_VALUES:
            raise InvalidInput(
                f"Invalid input: size must be one of {', '.join(CHURCH_SIZE_VALUES)}.",
                details={"size": size},
            )

        return cls(
            size=size,
            location=location,
            denomination=_choice(denomination),
            worship_style=_choice(_pick(data, "worshipStyle", "worship_style")),
            distance=_distance(_pick(data, "distance")),
            priorities=_priorities(_pick(data, "priorities")),
            additional_info=str(_pick(data, "additionalInfo", "additional_info") or "").strip(),
        )

    def to_payload(self) -> dict[str, Any]:
        """Wire form. No-preference fields are sent as the token, never omitted."""
        return {
            "denomination": self.denomination,
            "size": self.size,
            "location": self.location,
            "worshipStyle": self.worship_style,
            "distance": self.distance,
            "priorities": list(self.priorities),
            "additionalInfo": self.additional_info,
        }

    def describe(self) -> list[str]:
        """Human-readable preference lines for the model prompt."""
        def shown(value: str, options=None) -> str:
            if value == NO_PREFERENCE:
                return NO_PREFERENCE_LABEL
            return label_for(options, value) if options else value

        if self.distance == NO_PREFERENCE:
            distance = NO_PREFERENCE_LABEL
        else:
            distance = f"Within {self.distance} miles"

        priorities = ", ".join(label_for(PRIORITY_OPTIONS, p) for p in self.priorities)
        return [
            f"Denomination: {shown(self.denomination)}",
            f"Size: {label_for(CHURCH_SIZES, self.size)}",
            f"Worship style: {shown(self.worship_style, WORSHIP_STYLES)}",
            f"Location: {self.location}",
            f"Distance: {distance}",
            f"Priorities: {priorities or NO_PREFERENCE_LABEL}",
            f"Additional info: {self.additional_info or '(none)'}",
        ]
