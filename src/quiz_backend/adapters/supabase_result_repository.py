"""Supabase-backed result repository."""

from dataclasses import dataclass
from datetime import datetime

import httpx
from supabase import Client, PostgrestAPIError

from quiz_backend.domain.errors import DuplicateResultError, RepositoryUnavailableError
from quiz_backend.domain.results import AttemptResult
from quiz_backend.services.results import ResultRepository

_TABLE = "quiz_results"
_COLUMNS = (
    "name, batch_id, score, completion_time, quiz_start_time, entry_time, submitted_at"
)
# Postgres unique_violation, raised by the (name, batch_id) constraint.
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseResultRepository(ResultRepository):
    """Supabase implementation for quiz results."""

    client: Client

    def create_result(self, result: AttemptResult) -> AttemptResult:
        """Insert a result row and return the stored record."""
        query = self.client.table(_TABLE).insert(
            {
                "name": result.name,
                "batch_id": result.batch_id,
                "score": result.score,
                "completion_time": result.completion_time_seconds,
                "quiz_start_time": result.quiz_start_time.isoformat(),
                "entry_time": result.entry_time.isoformat(),
                "submitted_at": result.submitted_at.isoformat(),
            }
        )
        try:
            response = query.execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateResultError(
                    f"Result already stored for {result.name} in {result.batch_id}"
                ) from exc
            raise RepositoryUnavailableError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise RepositoryUnavailableError(str(exc)) from exc
        if not response.data:
            raise RepositoryUnavailableError("Failed to create result")
        return _to_result(response.data[0])

    def has_result(self, name: str, batch_id: str | None) -> bool:
        """Return True if a result exists for the name (in the batch if given)."""
        query = self.client.table(_TABLE).select("name").eq("name", name)
        if batch_id is not None:
            query = query.eq("batch_id", batch_id)
        response = _execute(query.limit(1))
        return bool(response.data)

    def list_results(
        self, batch_id: str | None = None, limit: int | None = None
    ) -> list[AttemptResult]:
        """Return results in leaderboard order, at most ``limit`` rows."""
        query = self.client.table(_TABLE).select(_COLUMNS)
        if batch_id is not None:
            query = query.eq("batch_id", batch_id)
        query = (
            query.order("score", desc=True)
            .order("completion_time")
            .order("submitted_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        response = _execute(query)
        return [_to_result(row) for row in response.data or []]


def _execute(query):  # type: ignore[no-untyped-def]
    try:
        return query.execute()
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise RepositoryUnavailableError(str(exc)) from exc


def _to_result(row: dict[str, object]) -> AttemptResult:
    return AttemptResult(
        name=str(row["name"]),
        batch_id=str(row["batch_id"]),
        score=int(row["score"]),
        completion_time_seconds=float(row["completion_time"]),
        quiz_start_time=datetime.fromisoformat(str(row["quiz_start_time"])),
        entry_time=datetime.fromisoformat(str(row["entry_time"])),
        submitted_at=datetime.fromisoformat(str(row["submitted_at"])),
    )
