"""Matching Service - Pick the best church and runner-ups for a visitor.

This module handles:
- Validating match requests (preferences + candidate churches)
- Rendering the instruction prompt with the output schema and candidate list
- Calling the generation backend with bounded retry on transient failure
- Parsing and validating the model's selection against the submitted churches

Interface Contract:
- handle_request(body) -> MatchSelection   (raw JSON request body)
- match(preferences, candidates) -> MatchSelection
- Raises InvalidInput before any backend call when input is unusable
- Raises UpstreamUnavailable when the backend fails after retries
- Raises MalformedModelOutput when the backend answer breaks the contract

The service is stateless and never returns full church records, only
identifiers and reasons.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Callable

from config import MATCH_TEMPERATURE, UPSTREAM_BACKOFF_SECONDS, UPSTREAM_RETRIES
from faith_finder.errors import InvalidInput, MalformedModelOutput, UpstreamUnavailable
from faith_finder.models import Church, MatchSelection, PreferenceQuery
from faith_finder.models.church import invalid_fields
from faith_finder.models.match import expected_runner_ups

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

SYSTEM_PROMPT = """You match a user to a church from a provided list.

Return ONLY valid JSON with this exact shape:
{shape}

Rules:
- churchId MUST be one of the provided church ids. Never invent ids.
- Pick exactly 1 bestMatch and exactly {runner_up_count} runnerUps.
- Never repeat a church: every churchId in the answer must be different.
- bestMatch.reason MUST start with "Best match because:" and include 2–4 bullet points.
- runnerUps reasons should be 1–2 sentences each.
- Be specific: reference denomination/size/location/other preferences when relevant.
- Plain language. No marketing fluff."""


def _shape(runner_up_count: int) -> str:
    pick = '{ "churchId": string, "reason": string }'
    runner_ups = ", ".join([pick] * runner_up_count)
    return (
        "{\n"
        f'  "bestMatch": {pick},\n'
        f'  "runnerUps": [ {runner_ups} ]\n'
        "}"
    ).replace("[  ]", "[]")


def parse_candidates(raw: Any) -> list[Church]:
    """Validate the submitted church list.

    Raises:
        InvalidInput: If the list is missing, empty, or has missing or
            duplicate identifiers, or fields of the wrong type.
    """
    if not isinstance(raw, list) or not raw:
        raise InvalidInput()

    churches = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise InvalidInput(
                "Invalid input: each church must be an object.",
                details={"index": index},
            )
        bad = invalid_fields(item)
        if bad:
            raise InvalidInput(
                "Invalid input: church fields have the wrong type.",
                details={"index": index, "fields": bad},
            )
        church = Church.from_dict(item)
        if not church.id.strip():
            raise InvalidInput(
                "Invalid input: every church needs an id.",
                details={"index": index},
            )
        if church.id in seen:
            raise InvalidInput(
                "Invalid input: church ids must be unique.",
                details={"duplicateId": church.id},
            )
        seen.add(church.id)
        churches.append(church)
    return churches


class MatchingService:
    """Service that asks the generation backend to choose among candidates."""

    def __init__(
        self,
        llm_service=None,
        *,
        temperature: float = MATCH_TEMPERATURE,
        retries: int = UPSTREAM_RETRIES,
        backoff_seconds: float = UPSTREAM_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize with optional LLM service dependency.

        Args:
            llm_service: LLM service for generation. If None, uses default.
            temperature: Sampling temperature for the match call.
            retries: Extra attempts after an upstream failure.
            backoff_seconds: First retry delay; doubles on each retry.
            sleep: Delay function (swapped out in tests).
        """
        self._llm = llm_service
        self.temperature = temperature
        self.retries = max(0, retries)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @property
    def llm(self):
        """Lazy load LLM service."""
        if self._llm is None:
            from faith_finder.services.llm_service import LLMService
            self._llm = LLMService.get_instance()
        return self._llm

    def handle_request(self, body: Any) -> MatchSelection:
        """Validate a raw request body and run the match.

        Args:
            body: Decoded JSON body following the match-church contract.

        Returns:
            MatchSelection: Validated selection.

        Raises:
            InvalidInput: If size, location or churches is missing or invalid.
            UpstreamUnavailable: If the backend keeps failing.
            MalformedModelOutput: If the backend answer is unusable.
        """
        if not isinstance(body, dict):
            raise InvalidInput("Invalid input: expected a JSON object.")

        missing = [
            key for key in ("size", "location", "churches")
            if not body.get(key) or (isinstance(body.get(key), str) and not body[key].strip())
        ]
        if missing:
            raise InvalidInput(details={"missing": missing})

        preferences = PreferenceQuery.from_form(body)
        candidates = parse_candidates(body.get("churches"))
        return self.match(preferences, candidates)

    def match(self, preferences: PreferenceQuery, candidates: list[Church]) -> MatchSelection:
        """Pick one best match and up to two runner-ups from ``candidates``.

        With fewer than three candidates the selection shrinks rather than
        repeating or inventing churches: one candidate yields no runner-ups,
        two candidates yield one.
        """
        if not candidates:
            raise InvalidInput()

        system = self._build_system_prompt(len(candidates))
        prompt = self._build_user_prompt(preferences, candidates)
        logger.info(
            "Matching %d candidates (size=%s, location=%s)",
            len(candidates), preferences.size, preferences.location,
        )

        completion = self._call_backend(prompt, system)
        data = self._decode(completion)
        try:
            selection = MatchSelection.parse(data, [c.id for c in candidates])
        except MalformedModelOutput as e:
            logger.warning("Malformed model output: %s (%s)", e.message, e.details)
            e.details = {**(e.details or {}), "raw": completion[:2000]}
            raise

        returned = len(data.get("runnerUps", []))
        if returned > len(selection.runner_ups):
            logger.info("Trimmed %d surplus runner-ups", returned - len(selection.runner_ups))
        return selection

    def _call_backend(self, prompt: str, system: str) -> str:
        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            try:
                return self.llm.call(
                    prompt,
                    system=system,
                    json_mode=True,
                    temperature=self.temperature,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Generation backend failed (attempt %d/%d): %s",
                    attempt + 1, self.retries + 1, e,
                )
                if attempt < self.retries:
                    self._sleep(self.backoff_seconds * (2 ** attempt))
        raise UpstreamUnavailable(details=str(last_error)) from last_error

    def _decode(self, completion: str) -> dict[str, Any]:
        cleaned = _FENCE_RE.sub("", (completion or "").strip())
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.warning("Model output is not JSON: %s", e)
            raise MalformedModelOutput(details={"raw": (completion or "")[:2000]}) from e
        if not isinstance(data, dict):
            raise MalformedModelOutput(details={"raw": (completion or "")[:2000]})
        return data

    def _build_system_prompt(self, candidate_count: int) -> str:
        """Build the fixed instruction for a pool of this size."""
        count = expected_runner_ups(candidate_count)
        return SYSTEM_PROMPT.format(shape=_shape(count), runner_up_count=count)

    def _build_user_prompt(self, preferences: PreferenceQuery, candidates: list[Church]) -> str:
        """Build the user message with preferences and the church list."""
        lines = "\n".join(f"- {line}" for line in preferences.describe())
        church_list = json.dumps([c.to_prompt_dict() for c in candidates], ensure_ascii=False)
        return f"""User preferences:
{lines}

Church list (JSON):
{church_list}"""
