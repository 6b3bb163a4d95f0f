"""
Unit tests for InMemorySessionStore.

Covers copy semantics, idle eviction and per-session locking.
"""

import threading
from datetime import timedelta

import pytest

from adaptive_quiz.core.errors import NotFoundError, StoreError
from adaptive_quiz.core.models import QuizSession
from adaptive_quiz.session.session_store import InMemorySessionStore


@pytest.fixture
def store(clock):
    return InMemorySessionStore(ttl=timedelta(minutes=60), clock=clock)


@pytest.fixture
def new_session(clock):
    def factory(session_id: str = "s1", user_id: str = "alice") -> QuizSession:
        return QuizSession(
            session_id=session_id,
            user_id=user_id,
            subject="all",
            question_count=10,
            start_time=clock(),
            last_activity_at=clock(),
            used_question_ids=["q1"],
        )

    return factory


class TestCrud:
    def test_create_and_get(self, store, new_session):
        store.create(new_session())

        session = store.get("s1")
        assert session.user_id == "alice"
        assert len(store) == 1
        assert "s1" in store

    def test_create_duplicate_fails(self, store, new_session):
        store.create(new_session())

        with pytest.raises(StoreError):
            store.create(new_session())

    def test_get_unknown_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get("missing")

    def test_get_returns_private_copy(self, store, new_session):
        store.create(new_session())

        session = store.get("s1")
        session.used_question_ids.append("q2")
        session.consecutive_correct = 5

        stored = store.get("s1")
        assert stored.used_question_ids == ["q1"]
        assert stored.consecutive_correct == 0

    def test_replace_publishes_changes(self, store, new_session, clock):
        store.create(new_session())
        session = store.get("s1")
        session.current_question_number = 2
        clock.advance(minutes=5)

        store.replace("s1", session)

        stored = store.get("s1")
        assert stored.current_question_number == 2
        assert stored.last_activity_at == clock()

    def test_replace_unknown_raises_not_found(self, store, new_session):
        with pytest.raises(NotFoundError):
            store.replace("s1", new_session())

    def test_delete(self, store, new_session):
        store.create(new_session())

        assert store.delete("s1") is True
        assert store.delete("s1") is False
        assert "s1" not in store


class TestExpiry:
    def test_idle_session_expires_on_get(self, store, new_session, clock):
        store.create(new_session())
        clock.advance(minutes=61)

        with pytest.raises(NotFoundError):
            store.get("s1")
        assert len(store) == 0

    def test_activity_extends_lifetime(self, store, new_session, clock):
        store.create(new_session())
        clock.advance(minutes=50)
        store.replace("s1", store.get("s1"))
        clock.advance(minutes=50)

        assert store.get("s1").session_id == "s1"

    def test_cleanup_expired(self, store, new_session, clock):
        store.create(new_session("old"))
        clock.advance(minutes=45)
        store.create(new_session("fresh"))
        clock.advance(minutes=30)

        assert store.cleanup_expired() == 1
        assert "old" not in store
        assert "fresh" in store

    def test_create_evicts_expired_sessions(self, store, new_session, clock):
        store.create(new_session("old"))
        clock.advance(hours=2)

        store.create(new_session("new"))

        assert len(store) == 1


class TestLocking:
    def test_lock_unknown_session_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            with store.lock("missing"):
                pass

    def test_lock_is_reentrant(self, store, new_session):
        store.create(new_session())

        with store.lock("s1"):
            with store.lock("s1"):
                assert store.get("s1").session_id == "s1"

    def test_same_session_is_serialized(self, store, new_session):
        store.create(new_session())
        holding = threading.Event()
        release = threading.Event()
        entered = threading.Event()

        def holder():
            with store.lock("s1"):
                holding.set()
                release.wait(timeout=5)

        def waiter():
            with store.lock("s1"):
                entered.set()

        first = threading.Thread(target=holder)
        first.start()
        holding.wait(timeout=5)

        second = threading.Thread(target=waiter)
        second.start()
        assert not entered.wait(timeout=0.2)

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)
        assert entered.is_set()

    def test_other_sessions_do_not_wait(self, store, new_session):
        store.create(new_session("s1"))
        store.create(new_session("s2"))
        release = threading.Event()
        holding = threading.Event()

        def holder():
            with store.lock("s1"):
                holding.set()
                release.wait(timeout=5)

        thread = threading.Thread(target=holder)
        thread.start()
        holding.wait(timeout=5)

        try:
            with store.lock("s2"):
                assert store.get("s2").session_id == "s2"
        finally:
            release.set()
            thread.join(timeout=5)
