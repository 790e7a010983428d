"""Match selection and reconciled result models."""

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Iterable

from faith_finder.errors import MalformedModelOutput
from faith_finder.models.church import Church

MAX_RUNNER_UPS = 2


def expected_runner_ups(candidate_count: int) -> int:
    """Runner-ups a pool of this size can supply without repeating the best match."""
    return max(0, min(MAX_RUNNER_UPS, candidate_count - 1))


def _pick_from(obj: Any, where: str) -> "MatchPick":
    if not isinstance(obj, dict):
        raise ValueError(f"{where} must be an object")
    church_id = obj.get("churchId")
    reason = obj.get("reason")
    if not isinstance(church_id, str) or not church_id.strip():
        raise ValueError(f"{where}.churchId must be a non-empty string")
    if not isinstance(reason, str) or not reason.strip():
        raise ValueError(f"{where}.reason must be a non-empty string")
    return MatchPick(church_id=church_id, reason=reason.strip())


@dataclass(frozen=True)
class MatchPick:
    """One selected church identifier and why it was chosen."""
    church_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"churchId": self.church_id, "reason": self.reason}


@dataclass(frozen=True)
class MatchSelection:
    """The matching service's output: identifiers and reasons only."""
    best_match: MatchPick
    runner_ups: tuple[MatchPick, ...] = ()

    @property
    def church_ids(self) -> list[str]:
        return [self.best_match.church_id] + [p.church_id for p in self.runner_ups]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire response body."""
        return {
            "bestMatch": self.best_match.to_dict(),
            "runnerUps": [p.to_dict() for p in self.runner_ups],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "MatchSelection":
        """Check the shape of a selection without looking at the candidate list.

        Raises:
            ValueError: If any required field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("selection must be a JSON object")
        best = _pick_from(data.get("bestMatch"), "bestMatch")
        runner_ups = data.get("runnerUps")
        if not isinstance(runner_ups, list):
            raise ValueError("runnerUps must be an array")
        picks = tuple(_pick_from(item, f"runnerUps[{i}]") for i, item in enumerate(runner_ups))
        return cls(best_match=best, runner_ups=picks)

    @classmethod
    def parse(cls, data: Any, candidate_ids: Iterable[str]) -> "MatchSelection":
        """Parse and validate model output against the submitted candidates.

        Accept or reject; the only repair is trimming surplus runner-ups that
        are otherwise valid.

        Args:
            data: Decoded JSON from the generation backend.
            candidate_ids: Identifiers of the churches that were submitted.

        Returns:
            MatchSelection: A selection whose identifiers all come from
                ``candidate_ids``.

        Raises:
            MalformedModelOutput: If the shape is wrong, an identifier is
                unknown or repeated, or too few runner-ups were returned.
        """
        try:
            selection = cls.from_dict(data)
        except ValueError as e:
            raise MalformedModelOutput(details={"reason": str(e)}) from e

        known = set(candidate_ids)
        unknown = [cid for cid in selection.church_ids if cid not in known]
        if unknown:
            raise MalformedModelOutput(
                "Model selected churches that were not in the list",
                details={"unknownIds": unknown},
            )

        ids = selection.church_ids
        if len(set(ids)) != len(ids):
            raise MalformedModelOutput(
                "Model selected the same church more than once",
                details={"churchIds": ids},
            )

        expected = expected_runner_ups(len(known))
        if len(selection.runner_ups) < expected:
            raise MalformedModelOutput(
                f"Model returned {len(selection.runner_ups)} runner-ups, expected {expected}",
                details={"expected": expected, "received": len(selection.runner_ups)},
            )
        if len(selection.runner_ups) > expected:
            selection = cls(
                best_match=selection.best_match,
                runner_ups=selection.runner_ups[:expected],
            )
        return selection


@dataclass
class ChurchMatch:
    """A church record merged with the reason it was picked.

    Optional fields are normalized so renderers never need to check them:
    a missing description is ``""``, missing coordinates are ``None``.
    """
    id: str
    name: str
    denomination: str
    size: str
    location: str
    address: str
    description: str = ""
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    website: str | None = None
    reason: str = ""

    @classmethod
    def from_church(cls, church: Church, reason: str) -> "ChurchMatch":
        has_coordinates = church.has_coordinates
        return cls(
            id=church.id,
            name=church.name,
            denomination=church.denomination,
            size=church.size,
            location=church.location,
            address=church.address,
            description=church.description or "",
            latitude=church.latitude if has_coordinates else None,
            longitude=church.longitude if has_coordinates else None,
            phone=church.phone,
            website=church.website,
            reason=reason,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "denomination": self.denomination,
            "size": self.size,
            "location": self.location,
            "address": self.address,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "phone": self.phone,
            "website": self.website,
            "reason": self.reason,
        }


@dataclass
class MatchResults:
    """Display-ready best match plus up to two runner-ups."""
    best_match: ChurchMatch
    runner_ups: list[ChurchMatch] = dataclass_field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bestMatch": self.best_match.to_dict(),
            "runnerUps": [m.to_dict() for m in self.runner_ups],
        }
