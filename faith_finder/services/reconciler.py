"""Join a match selection back onto the loaded church records."""

from __future__ import annotations

import logging
from typing import Iterable

from faith_finder.errors import ReconciliationError
from faith_finder.models import Church, ChurchMatch, MatchResults, MatchSelection

logger = logging.getLogger(__name__)


def reconcile(selection: MatchSelection, candidates: Iterable[Church]) -> MatchResults:
    """Build display-ready results from a selection and the candidate list.

    The best match must resolve; runner-ups that don't are dropped.

    Raises:
        ReconciliationError: If the best match id is not among ``candidates``.
    """
    by_id = {church.id: church for church in candidates}

    best = by_id.get(selection.best_match.church_id)
    if best is None:
        raise ReconciliationError(details={"churchId": selection.best_match.church_id})

    runner_ups = []
    for pick in selection.runner_ups:
        church = by_id.get(pick.church_id)
        if church is None:
            logger.debug("Dropping runner-up %s: not in the loaded list", pick.church_id)
            continue
        runner_ups.append(ChurchMatch.from_church(church, pick.reason))

    return MatchResults(
        best_match=ChurchMatch.from_church(best, selection.best_match.reason),
        runner_ups=runner_ups,
    )
