"""Error kinds raised by the quiz services."""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error kinds with their HTTP status codes."""

    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    UNKNOWN_BATCH = "UNKNOWN_BATCH"
    BATCH_CLOSED = "BATCH_CLOSED"
    NAME_TAKEN = "NAME_TAKEN"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    DUPLICATE_RESULT = "DUPLICATE_RESULT"
    REPOSITORY_UNAVAILABLE = "REPOSITORY_UNAVAILABLE"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.MISSING_FIELD: 400,
    ErrorKind.INVALID_FIELD: 400,
    ErrorKind.UNKNOWN_BATCH: 404,
    ErrorKind.BATCH_CLOSED: 403,
    ErrorKind.NAME_TAKEN: 400,
    ErrorKind.NO_ACTIVE_SESSION: 400,
    ErrorKind.DUPLICATE_RESULT: 400,
    ErrorKind.REPOSITORY_UNAVAILABLE: 500,
}


class QuizError(Exception):
    """A request-level failure with a stable kind and a readable message."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.kind.value, "message": self.message}


class RepositoryError(Exception):
    """Base class for result persistence failures."""


class DuplicateResultError(RepositoryError):
    """A result already exists for the participant in the batch."""


class RepositoryUnavailableError(RepositoryError):
    """The result store could not be reached or returned no data."""
