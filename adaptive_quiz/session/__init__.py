"""Active session storage."""

from adaptive_quiz.session.session_store import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
