"""Leaderboard ordering for finished attempts."""

from collections.abc import Iterable

from quiz_backend.domain.results import AttemptResult

DEFAULT_LIMIT = 10


def rank(
    results: Iterable[AttemptResult], limit: int = DEFAULT_LIMIT
) -> list[AttemptResult]:
    """Order results by score desc, completion time asc, then newest first.

    Sorting is stable, so the least significant key is applied first.
    """
    ordered = sorted(results, key=lambda result: result.submitted_at, reverse=True)
    ordered.sort(key=lambda result: (-result.score, result.completion_time_seconds))
    return ordered[: max(limit, 0)]
