"""Result persistence interface and leaderboard queries."""

import logging
from dataclasses import dataclass
from typing import Protocol

from quiz_backend.domain.errors import ErrorKind, QuizError, RepositoryError
from quiz_backend.domain.results import AttemptResult
from quiz_backend.services.ranking import DEFAULT_LIMIT, rank

logger = logging.getLogger(__name__)


class ResultRepository(Protocol):
    """Persistence interface for finished attempts."""

    def create_result(self, result: AttemptResult) -> AttemptResult:
        """Store a result; raise DuplicateResultError if one exists for the pair."""

    def has_result(self, name: str, batch_id: str | None) -> bool:
        """Return True if the name has a result in the batch (any batch if None)."""

    def list_results(
        self, batch_id: str | None = None, limit: int | None = None
    ) -> list[AttemptResult]:
        """Return results in leaderboard order, optionally filtered by batch."""


@dataclass
class LeaderboardService:
    """Service for ranked result queries."""

    repository: ResultRepository
    default_limit: int = DEFAULT_LIMIT

    def leaderboard(
        self, batch_id: str | None = None, limit: int | None = None
    ) -> list[AttemptResult]:
        """Return the top results, optionally for a single batch."""
        resolved_limit = max(self.default_limit if limit is None else limit, 0)
        try:
            results = self.repository.list_results(batch_id, resolved_limit)
        except RepositoryError as exc:
            logger.exception("Leaderboard fetch failed for batch %s", batch_id)
            raise QuizError(
                ErrorKind.REPOSITORY_UNAVAILABLE, "Failed to fetch leaderboard"
            ) from exc
        return rank(results, resolved_limit)
