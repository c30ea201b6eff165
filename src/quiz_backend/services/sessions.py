"""Process-wide store of in-progress quiz sessions."""

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from quiz_backend.domain.sessions import ParticipantKey, Session


class SessionStore(Protocol):
    """Storage interface for active sessions."""

    def lock(self, key: ParticipantKey) -> AbstractContextManager[None]:
        """Return a critical section covering a single participant key."""

    def get(self, key: ParticipantKey) -> Session | None:
        """Return the session for a key, if present."""

    def get_or_create(
        self, key: ParticipantKey, started_at: datetime
    ) -> tuple[Session, bool]:
        """Return the existing session or create one; flag whether it was created."""

    def delete(self, key: ParticipantKey) -> Session | None:
        """Remove and return the session for a key, if present."""

    def list_sessions(self) -> list[Session]:
        """Return a snapshot of all sessions."""


class InMemorySessionStore(SessionStore):
    """Thread-safe in-memory session store.

    Map access is guarded by one short-lived lock. Callers needing a
    read-check-then-write sequence over one key hold ``lock(key)``. Every key
    has its own lock, so repository calls made under one participant's lock
    never block another participant. A key's lock is dropped from the table
    once no thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._sessions: dict[ParticipantKey, Session] = {}
        self._mutex = threading.Lock()
        self._key_locks: dict[ParticipantKey, _KeyLock] = {}

    @contextmanager
    def lock(self, key: ParticipantKey) -> Iterator[None]:
        """Hold the lock for a single key."""
        with self._mutex:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._mutex:
                entry.users -= 1
                if entry.users == 0:
                    del self._key_locks[key]

    def get(self, key: ParticipantKey) -> Session | None:
        """Return the session for a key, if present."""
        with self._mutex:
            return self._sessions.get(key)

    def get_or_create(
        self, key: ParticipantKey, started_at: datetime
    ) -> tuple[Session, bool]:
        """Return the existing session or store a new one atomically."""
        with self._mutex:
            existing = self._sessions.get(key)
            if existing is not None:
                return existing, False
            session = Session(key=key, started_at=started_at)
            self._sessions[key] = session
            return session, True

    def delete(self, key: ParticipantKey) -> Session | None:
        """Remove the session for a key."""
        with self._mutex:
            return self._sessions.pop(key, None)

    def list_sessions(self) -> list[Session]:
        """Return sessions ordered by start time."""
        with self._mutex:
            sessions = list(self._sessions.values())
        return sorted(sessions, key=lambda session: session.started_at)

    def __len__(self) -> int:
        with self._mutex:
            return len(self._sessions)


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0
