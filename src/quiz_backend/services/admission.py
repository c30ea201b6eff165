"""Batch admission and session lifecycle.

Per participant key the lifecycle is NoSession -> Active -> Completed:
``check_name`` admits a participant into an open batch (or lets an already
admitted one continue after the window closes) and ``save_result`` turns the
active session into a stored result.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from quiz_backend.domain.errors import (
    DuplicateResultError,
    ErrorKind,
    QuizError,
    RepositoryError,
)
from quiz_backend.domain.results import AttemptResult
from quiz_backend.domain.sessions import ParticipantKey, Session
from quiz_backend.services.batches import BatchCatalog
from quiz_backend.services.clock import Clock, localize
from quiz_backend.services.results import ResultRepository
from quiz_backend.services.sessions import SessionStore

logger = logging.getLogger(__name__)

MAX_SCORE = 5


class AdmissionOutcome(str, Enum):
    """Successful outcomes of a name check."""

    ADMITTED = "ADMITTED"
    CONTINUE_SESSION = "CONTINUE_SESSION"


class NameScope(str, Enum):
    """Where a name must be unique among finished attempts."""

    BATCH = "batch"
    GLOBAL = "global"


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of a successful name check."""

    outcome: AdmissionOutcome
    session: Session
    message: str


@dataclass
class AdmissionController:
    """Decides whether a participant may start or continue an attempt."""

    catalog: BatchCatalog
    session_store: SessionStore
    result_repository: ResultRepository
    clock: Clock
    name_scope: NameScope = NameScope.BATCH
    session_grace_minutes: int | None = None

    def check_name(
        self,
        name: str | None,
        batch_id: str | None,
        now: datetime | None = None,
    ) -> AdmissionDecision:
        """Admit a participant into a batch or let them continue their session."""
        name = _clean(name)
        batch_id = _clean(batch_id)
        if not name or not batch_id:
            raise self._reject(
                "check-name",
                ErrorKind.MISSING_FIELD,
                "Name and batch id are required",
                name,
                batch_id,
            )
        if self.catalog.get(batch_id) is None:
            raise self._reject(
                "check-name",
                ErrorKind.UNKNOWN_BATCH,
                f"Unknown batch: {batch_id}",
                name,
                batch_id,
            )

        moment = now or self.clock.now()
        key = ParticipantKey(name=name, batch_id=batch_id)
        with self.session_store.lock(key):
            if self._name_taken(key):
                raise self._reject(
                    "check-name",
                    ErrorKind.NAME_TAKEN,
                    "Name already used. Please choose a different name.",
                    name,
                    batch_id,
                )
            session = self._live_session(key, moment)
            if not self.catalog.is_open(batch_id, moment):
                if session is None:
                    raise self._reject(
                        "check-name",
                        ErrorKind.BATCH_CLOSED,
                        f"Batch {batch_id} is not open at this time",
                        name,
                        batch_id,
                    )
                return self._continue(session)
            if session is not None:
                return self._continue(session)
            session, created = self.session_store.get_or_create(key, moment)
            if not created:
                return self._continue(session)

        logger.info("Participant %s admitted to %s", name, batch_id)
        return AdmissionDecision(
            outcome=AdmissionOutcome.ADMITTED,
            session=session,
            message="Name accepted. You can start the quiz.",
        )

    def save_result(  # noqa: PLR0913
        self,
        name: str | None,
        batch_id: str | None,
        score: float | None,
        completion_time: float | None,
        entry_time: datetime | None,
        now: datetime | None = None,
    ) -> AttemptResult:
        """Persist the result of an active session and close the session."""
        name = _clean(name)
        batch_id = _clean(batch_id)
        fields = (
            ("name", name),
            ("batchId", batch_id),
            ("score", score),
            ("completionTime", completion_time),
            ("entryTime", entry_time),
        )
        missing = [label for label, value in fields if value is None]
        if missing:
            raise self._reject(
                "save-result",
                ErrorKind.MISSING_FIELD,
                f"Required fields are missing: {', '.join(missing)}",
                name,
                batch_id,
            )
        checked_score = self._validate_score(score, name, batch_id)
        if not math.isfinite(completion_time) or completion_time < 0:
            raise self._reject(
                "save-result",
                ErrorKind.INVALID_FIELD,
                "completionTime must be a non-negative number",
                name,
                batch_id,
            )

        moment = now or self.clock.now()
        key = ParticipantKey(name=name, batch_id=batch_id)
        with self.session_store.lock(key):
            session = self._live_session(key, moment)
            if session is None and self._has_result(key, key.batch_id):
                raise self._reject(
                    "save-result",
                    ErrorKind.DUPLICATE_RESULT,
                    "A result was already submitted for this name and batch",
                    name,
                    batch_id,
                )
            if session is None:
                raise self._reject(
                    "save-result",
                    ErrorKind.NO_ACTIVE_SESSION,
                    "No active session for this name and batch",
                    name,
                    batch_id,
                )
            result = AttemptResult(
                name=name,
                batch_id=batch_id,
                score=checked_score,
                completion_time_seconds=float(completion_time),
                quiz_start_time=session.started_at,
                entry_time=localize(entry_time, self.catalog.timezone),
                submitted_at=moment,
            )
            try:
                stored = self.result_repository.create_result(result)
            except DuplicateResultError as exc:
                self.session_store.delete(key)
                raise self._reject(
                    "save-result",
                    ErrorKind.DUPLICATE_RESULT,
                    "A result was already submitted for this name and batch",
                    name,
                    batch_id,
                ) from exc
            except RepositoryError as exc:
                logger.exception("Failed to save result for %s/%s", name, batch_id)
                raise QuizError(
                    ErrorKind.REPOSITORY_UNAVAILABLE, "Failed to save result"
                ) from exc
            self.session_store.delete(key)

        logger.info("Result saved for %s/%s: score %s", name, batch_id, stored.score)
        return stored

    def list_active_sessions(self) -> list[Session]:
        """Return all sessions currently held."""
        return self.session_store.list_sessions()

    def sweep_expired_sessions(self, now: datetime | None = None) -> int:
        """Remove sessions past their window end plus grace; return the count."""
        if self.session_grace_minutes is None:
            return 0
        moment = now or self.clock.now()
        removed = 0
        for session in self.session_store.list_sessions():
            with self.session_store.lock(session.key):
                if self.session_store.get(session.key) is None:
                    continue
                if self._live_session(session.key, moment) is None:
                    removed += 1
        if removed:
            logger.info("Swept %s expired sessions", removed)
        return removed

    def _name_taken(self, key: ParticipantKey) -> bool:
        scope = key.batch_id if self.name_scope is NameScope.BATCH else None
        return self._has_result(key, scope)

    def _has_result(self, key: ParticipantKey, scope: str | None) -> bool:
        try:
            return self.result_repository.has_result(key.name, scope)
        except RepositoryError as exc:
            logger.exception(
                "Failed to look up results for %s/%s", key.name, key.batch_id
            )
            raise QuizError(
                ErrorKind.REPOSITORY_UNAVAILABLE, "Failed to look up results"
            ) from exc

    def _live_session(self, key: ParticipantKey, moment: datetime) -> Session | None:
        """Return the session for a key, dropping it if it has expired."""
        session = self.session_store.get(key)
        if session is None or not self._is_expired(session, moment):
            return session
        self.session_store.delete(key)
        logger.info("Session expired for %s/%s", key.name, key.batch_id)
        return None

    def _is_expired(self, session: Session, moment: datetime) -> bool:
        if self.session_grace_minutes is None:
            return False
        window = self.catalog.window_of(session.key.batch_id, session.started_at)
        return moment > window.end + timedelta(minutes=self.session_grace_minutes)

    def _continue(self, session: Session) -> AdmissionDecision:
        logger.info(
            "Participant %s continuing session in %s",
            session.key.name,
            session.key.batch_id,
        )
        return AdmissionDecision(
            outcome=AdmissionOutcome.CONTINUE_SESSION,
            session=session,
            message="Continuing your existing session.",
        )

    def _validate_score(
        self, score: float, name: str | None, batch_id: str | None
    ) -> int:
        if (
            isinstance(score, bool)
            or not math.isfinite(score)
            or int(score) != score
        ):
            raise self._reject(
                "save-result",
                ErrorKind.INVALID_FIELD,
                "score must be a whole number",
                name,
                batch_id,
            )
        if not 0 <= score <= MAX_SCORE:
            raise self._reject(
                "save-result",
                ErrorKind.INVALID_FIELD,
                f"score must be between 0 and {MAX_SCORE}",
                name,
                batch_id,
            )
        return int(score)

    @staticmethod
    def _reject(
        operation: str,
        kind: ErrorKind,
        message: str,
        name: str | None,
        batch_id: str | None,
    ) -> QuizError:
        logger.info("Rejected %s for %s/%s: %s", operation, name, batch_id, kind.value)
        return QuizError(kind, message)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None
