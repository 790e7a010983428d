"""Admin Jobs - Trigger directory maintenance jobs over HTTP.

Jobs run out-of-band; the matching core never waits on them. Each call sends
``Authorization: Bearer <token>`` and, when set, ``x-admin-import-key``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any

import requests

from config import FUNCTIONS_BASE_URL, HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "x-admin-import-key"


class JobName(Enum):
    """Maintenance jobs reachable on the functions endpoint."""
    IMPORT_CHURCHES = "import-centre-county-churches"
    REFRESH_SITES = "refresh-church-sites"
    ENRICH = "enrich-churches"


JOB_DESCRIPTIONS = {
    JobName.IMPORT_CHURCHES: "Pull churches from OpenStreetMap for the county and upsert them.",
    JobName.REFRESH_SITES: "Re-crawl church websites and update cached site summaries.",
    JobName.ENRICH: "Add worship style, ministries and a clean summary using AI.",
}


@dataclass
class JobResult:
    """Outcome of one job trigger."""
    job: JobName
    ok: bool
    status: int | None = None
    error: str | None = None
    payload: dict[str, Any] = dataclass_field(default_factory=dict)


class AdminJobClient:
    """Client for the admin maintenance endpoints."""

    def __init__(
        self,
        *,
        base_url: str = FUNCTIONS_BASE_URL,
        access_token: str | None = None,
        admin_key: str | None = None,
        session: requests.Session | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.admin_key = (admin_key or "").strip()
        self.session = session or requests.Session()
        self.timeout = timeout

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.admin_key:
            headers[ADMIN_KEY_HEADER] = self.admin_key
        return headers

    def run(self, job: JobName | str) -> JobResult:
        """Trigger a job and report what came back. Never raises for HTTP errors."""
        job = JobName(job)
        url = f"{self.base_url}/functions/v1/{job.value}"
        logger.info("Triggering job %s", job.value)
        try:
            # Body is optional; an empty object keeps JSON parsing uniform
            resp = self.session.post(url, json={}, headers=self.headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Job %s failed to start: %s", job.value, e)
            return JobResult(job=job, ok=False, error=str(e) or "Unknown error")

        try:
            payload = resp.json() if resp.text else {"ok": resp.ok}
        except ValueError:
            payload = {"raw": resp.text[:1000]}
        if not isinstance(payload, dict):
            payload = {"result": payload}

        if not resp.ok:
            error = payload.get("error")
            return JobResult(
                job=job,
                ok=False,
                status=resp.status_code,
                error=str(error) if error else f"Request failed ({resp.status_code})",
                payload=payload,
            )
        return JobResult(job=job, ok=True, status=resp.status_code, payload=payload)
