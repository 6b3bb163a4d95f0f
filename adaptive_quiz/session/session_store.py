"""
In-process store for active adaptive quiz sessions.

Holds one QuizSession per in-progress quiz. Callers get private copies, so a
failed request never leaves a half-mutated session behind; changes become
visible only through ``replace``.

Concurrency:
- A registry guard protects the session and lock maps for O(1) operations only.
- Each session has its own re-entrant lock. ``lock(session_id)`` holds it
  across a read-mutate-write sequence so duplicate submissions for one
  session are serialized, while different sessions never wait on each other.

Abandoned sessions are evicted after an idle timeout.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from loguru import logger

from adaptive_quiz.core.errors import NotFoundError, StoreError
from adaptive_quiz.core.models import QuizSession


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySessionStore:
    """
    Keyed container for active sessions with per-session serialization.

    Sessions are lost on process restart.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=60),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl
        self._clock = clock
        self._guard = threading.Lock()
        self._sessions: dict[str, QuizSession] = {}
        self._locks: dict[str, threading.RLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._guard:
            return session_id in self._sessions

    def create(self, session: QuizSession) -> None:
        """Add a new session. Fails if the id is already present."""
        self.cleanup_expired()

        with self._guard:
            if session.session_id in self._sessions:
                raise StoreError(
                    f"Session {session.session_id} already exists",
                    session_id=session.session_id,
                )
            session.last_activity_at = self._clock()
            self._sessions[session.session_id] = session.clone()
            self._locks[session.session_id] = threading.RLock()

    def get(self, session_id: str) -> QuizSession:
        """Return a copy of the session, or raise NotFoundError."""
        with self._guard:
            session = self._sessions.get(session_id)
            if session is not None and session.is_expired(self.ttl, self._clock()):
                self._evict(session_id)
                logger.info(f"Session {session_id} expired after {self.ttl} idle")
                session = None

            if session is None:
                raise NotFoundError("Quiz session not found", session_id=session_id)

            return session.clone()

    def replace(self, session_id: str, session: QuizSession) -> None:
        """Overwrite an existing session and refresh its idle timer."""
        with self._guard:
            if session_id not in self._sessions:
                raise NotFoundError("Quiz session not found", session_id=session_id)
            session.last_activity_at = self._clock()
            self._sessions[session_id] = session.clone()

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was not present."""
        with self._guard:
            return self._evict(session_id)

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """
        Serialize all work on one session.

        Raises NotFoundError for unknown ids. A waiter that acquires the lock
        after the session was deleted sees NotFoundError on its next ``get``.
        """
        with self._guard:
            session_lock = self._locks.get(session_id)
        if session_lock is None:
            raise NotFoundError("Quiz session not found", session_id=session_id)

        with session_lock:
            yield

    def cleanup_expired(self) -> int:
        """Evict all sessions idle longer than the TTL."""
        now = self._clock()
        with self._guard:
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if session.is_expired(self.ttl, now)
            ]
            for session_id in expired:
                self._evict(session_id)

        if expired:
            logger.info(f"Evicted {len(expired)} idle quiz session(s)")
        return len(expired)

    def _evict(self, session_id: str) -> bool:
        # Caller holds self._guard
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None
