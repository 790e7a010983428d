"""Option lists shared by the preference form, the prompt and the CLI.

Values are stable identifiers; labels are what a visitor reads.
"""

from __future__ import annotations

from dataclasses import dataclass

# Canonical "no preference" token. Empty strings are never used for this.
NO_PREFERENCE = "no-preference"
NO_PREFERENCE_LABEL = "No preference / Not sure"

# Older form variants stored these instead of the token
LEGACY_NO_PREFERENCE = frozenset({
    "",
    "none",
    "any",
    "no preference",
    "no preference / not sure",
    "not sure",
    "no-preference",
})

# Selecting the whole county means "don't narrow the directory by location"
COUNTY_WIDE_LOCATION = "Centre County"


@dataclass(frozen=True)
class Option:
    value: str
    label: str


DENOMINATION_OPTIONS = [
    Option(NO_PREFERENCE, "No preference"),
    Option("Catholic", "Catholic"),
    Option("Protestant", "Protestant"),
    Option("Non-denominational", "Non-denominational"),
    Option("Orthodox", "Orthodox"),
]

CHURCH_SIZES = [
    Option("small", "Small (tight-knit community)"),
    Option("medium", "Medium (balanced size)"),
    Option("large", "Large (many programs & groups)"),
]

WORSHIP_STYLES = [
    Option(NO_PREFERENCE, "No preference"),
    Option("traditional", "Traditional (hymns / liturgy)"),
    Option("contemporary", "Contemporary (modern music)"),
    Option("blended", "Blended (mix of both)"),
    Option("charismatic", "Charismatic (expressive worship)"),
    Option("quiet", "Quiet / contemplative"),
]

DISTANCE_OPTIONS_MILES = [
    Option(NO_PREFERENCE, "No preference"),
    Option("5", "Within 5 miles"),
    Option("10", "Within 10 miles"),
    Option("15", "Within 15 miles"),
    Option("25", "Within 25 miles"),
    Option("50", "Within 50 miles"),
]

PRIORITY_OPTIONS = [
    Option("kids", "Kids / Family"),
    Option("youth", "Youth / Teens"),
    Option("community", "Community involvement"),
    Option("missions", "Missions / Global outreach"),
    Option("small-groups", "Small groups"),
    Option("service", "Serving opportunities"),
    Option("accessibility", "Accessibility"),
    Option("music", "Music / Worship"),
    Option("teaching", "Teaching / Sermons"),
    Option("quiet", "Quiet / Reflective"),
]

LOCATION_OPTIONS = [
    Option(COUNTY_WIDE_LOCATION, "Centre County, PA"),
    Option("State College", "State College, PA"),
    Option("Bellefonte", "Bellefonte, PA"),
    Option("Boalsburg", "Boalsburg, PA"),
    Option("Penns Valley", "Penns Valley, PA"),
]


def label_for(options: list[Option], value: str) -> str:
    """Return the label for a value, or the value itself if it is free text."""
    for option in options:
        if option.value == value:
            return option.label
    return value


def is_no_preference(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in LEGACY_NO_PREFERENCE
