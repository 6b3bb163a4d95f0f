"""
Collaborator contracts consumed by the adaptive engine.

The engine never talks to storage directly; it is constructed with
implementations of these protocols (SQL, in-memory, or test doubles).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from adaptive_quiz.core.models import Difficulty, Question, QuizResult


@runtime_checkable
class QuestionRepository(Protocol):
    """Source of questions and sink for per-question usage statistics."""

    def fetch_adaptive(
        self,
        difficulty: Difficulty,
        subject: str | None,
        exclude_ids: Iterable[str],
        limit: int = 1,
    ) -> list[Question]:
        """
        Fetch candidate questions for the next step of a session.

        Candidates are active, match ``difficulty`` and ``subject`` (None or
        "all" matches any subject), are not in ``exclude_ids``, and are ordered
        by usage count ascending then correct rate descending.
        """
        ...

    def get_question(self, question_id: str) -> Question | None:
        """Look up a question by id."""
        ...

    def record_usage(self, question_id: str, is_correct: bool, time_spent_seconds: int) -> None:
        """Update usage count, running correct rate and running average time."""
        ...

    def list_subjects(self) -> list[str]:
        """Distinct subjects of active questions, sorted."""
        ...


@runtime_checkable
class ResultStore(Protocol):
    """Persistence for finished quiz results."""

    def save(self, result: QuizResult) -> str:
        """Persist a result and return its id."""
        ...

    def get(self, result_id: str) -> QuizResult | None:
        """Look up a result by id."""
        ...

    def list_for_user(
        self,
        user_id: str,
        limit: int = 10,
        offset: int = 0,
        subject: str | None = None,
    ) -> list[QuizResult]:
        """
        Results for a user, newest first.

        ``subject`` of None or "all" matches any subject.
        """
        ...

    def count_for_user(self, user_id: str, subject: str | None = None) -> int:
        """Number of results ``list_for_user`` can page through."""
        ...
