"""Tests for the in-memory session store."""

import threading

import pytest

from quiz_backend.domain.sessions import ParticipantKey
from quiz_backend.services.sessions import InMemorySessionStore
from tests.conftest import at


def test_get_or_create_keeps_first_session() -> None:
    store = InMemorySessionStore()
    key = ParticipantKey("alice", "b1")

    first, created = store.get_or_create(key, at(10, 1))
    second, created_again = store.get_or_create(key, at(10, 2))

    assert created is True
    assert created_again is False
    assert second == first
    assert store.get(key).started_at == at(10, 1)


def test_delete_removes_session() -> None:
    store = InMemorySessionStore()
    key = ParticipantKey("alice", "b1")
    store.get_or_create(key, at(10, 1))

    removed = store.delete(key)

    assert removed is not None
    assert store.get(key) is None
    assert store.delete(key) is None


def test_sessions_are_scoped_per_batch() -> None:
    store = InMemorySessionStore()
    store.get_or_create(ParticipantKey("alice", "b1"), at(10, 1))
    store.get_or_create(ParticipantKey("alice", "b2"), at(14, 1))

    assert len(store) == 2
    assert [session.key.batch_id for session in store.list_sessions()] == ["b1", "b2"]


def test_concurrent_get_or_create_creates_one_session() -> None:
    store = InMemorySessionStore()
    key = ParticipantKey("alice", "b1")
    barrier = threading.Barrier(8)
    created_flags: list[bool] = []
    flags_lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        _session, created = store.get_or_create(key, at(10, 1))
        with flags_lock:
            created_flags.append(created)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert created_flags.count(True) == 1
    assert len(store) == 1


def test_key_lock_serializes_critical_sections() -> None:
    store = InMemorySessionStore()
    key = ParticipantKey("alice", "b1")
    inside = 0
    overlaps: list[int] = []
    counter_lock = threading.Lock()

    def worker() -> None:
        nonlocal inside
        for _ in range(200):
            with store.lock(key):
                with counter_lock:
                    inside += 1
                    overlaps.append(inside)
                with counter_lock:
                    inside -= 1

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert max(overlaps) == 1


def test_key_lock_does_not_block_other_keys() -> None:
    store = InMemorySessionStore()
    entered = threading.Event()

    def other_participant() -> None:
        with store.lock(ParticipantKey("bob", "b1")):
            entered.set()

    with store.lock(ParticipantKey("alice", "b1")):
        thread = threading.Thread(target=other_participant)
        thread.start()
        assert entered.wait(timeout=2)
    thread.join()


def test_key_locks_are_released_after_use() -> None:
    store = InMemorySessionStore()
    key = ParticipantKey("alice", "b1")

    with store.lock(key):
        with store.lock(ParticipantKey("bob", "b1")):
            assert len(store._key_locks) == 2

    assert store._key_locks == {}

    with pytest.raises(RuntimeError), store.lock(key):
        raise RuntimeError("boom")

    assert store._key_locks == {}
