"""
In-process question repository and result store.

Used by the test suite, the terminal quiz and the default API wiring when no
database is wanted. Both are safe to share between request threads.
"""

from __future__ import annotations

import copy
import json
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from loguru import logger

from adaptive_quiz.core.models import ANY_SUBJECT, OPTION_COUNT, Difficulty, Question, QuizResult
from adaptive_quiz.repositories.usage import UsageStats, updated_usage_stats
from adaptive_quiz.session.session_store import utcnow


def load_questions_file(path: Path | str) -> list[Question]:
    """
    Load a JSON question bank.

    Accepts either a list of question objects or ``{"questions": [...]}``.
    Each question needs ``id``, ``question``, ``options`` (4), ``correct_index``,
    ``subject`` and ``difficulty``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Question bank not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    entries = data.get("questions", []) if isinstance(data, dict) else data

    questions = []
    for entry in entries:
        question = Question.from_dict(entry)
        if len(question.options) != OPTION_COUNT:
            raise ValueError(f"Question {question.id} must have exactly {OPTION_COUNT} options")
        if not 0 <= question.correct_index < OPTION_COUNT:
            raise ValueError(f"Question {question.id} has correct_index out of range")
        questions.append(question)

    logger.info(f"Loaded {len(questions)} questions from {path}")
    return questions


def matches_subject(question_subject: str, subject: str | None) -> bool:
    return subject is None or subject == ANY_SUBJECT or question_subject == subject


class InMemoryQuestionRepository:
    """Question bank held in a dict, ordered the same way as the SQL repository."""

    def __init__(
        self,
        questions: Iterable[Question] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._lock = threading.Lock()
        self._questions: dict[str, Question] = {}
        self._clock = clock
        for question in questions or []:
            self.add(question)

    @classmethod
    def from_file(cls, path: Path | str) -> "InMemoryQuestionRepository":
        return cls(load_questions_file(path))

    def __len__(self) -> int:
        with self._lock:
            return len(self._questions)

    def add(self, question: Question) -> None:
        with self._lock:
            self._questions[question.id] = copy.deepcopy(question)

    def fetch_adaptive(
        self,
        difficulty: Difficulty,
        subject: str | None,
        exclude_ids: Iterable[str],
        limit: int = 1,
    ) -> list[Question]:
        excluded = set(exclude_ids)
        with self._lock:
            candidates = [
                question
                for question in self._questions.values()
                if question.is_active
                and question.difficulty == difficulty
                and matches_subject(question.subject, subject)
                and question.id not in excluded
            ]
            # Least used first, then highest correct rate
            candidates.sort(key=lambda q: (q.usage_count, -q.correct_rate))
            return [copy.deepcopy(question) for question in candidates[:limit]]

    def get_question(self, question_id: str) -> Question | None:
        with self._lock:
            question = self._questions.get(question_id)
            return copy.deepcopy(question) if question else None

    def record_usage(self, question_id: str, is_correct: bool, time_spent_seconds: int) -> None:
        with self._lock:
            question = self._questions.get(question_id)
            if question is None:
                raise KeyError(f"Question {question_id} not found")

            stats = updated_usage_stats(
                UsageStats(question.usage_count, question.correct_rate, question.average_time),
                is_correct,
                time_spent_seconds,
            )
            question.usage_count, question.correct_rate, question.average_time = stats
            question.last_used = self._clock()

    def list_subjects(self) -> list[str]:
        with self._lock:
            return sorted({q.subject for q in self._questions.values() if q.is_active})


class InMemoryResultStore:
    """Keeps finished results in memory, keyed by generated id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._results: dict[str, QuizResult] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def save(self, result: QuizResult) -> str:
        result_id = uuid.uuid4().hex
        stored = copy.deepcopy(result)
        stored.result_id = result_id
        with self._lock:
            self._results[result_id] = stored
        return result_id

    def get(self, result_id: str) -> QuizResult | None:
        with self._lock:
            result = self._results.get(result_id)
            return copy.deepcopy(result) if result else None

    def list_for_user(
        self,
        user_id: str,
        limit: int = 10,
        offset: int = 0,
        subject: str | None = None,
    ) -> list[QuizResult]:
        results = self._matching(user_id, subject)
        results.sort(key=lambda r: r.end_time, reverse=True)
        return [copy.deepcopy(result) for result in results[offset : offset + limit]]

    def count_for_user(self, user_id: str, subject: str | None = None) -> int:
        return len(self._matching(user_id, subject))

    def _matching(self, user_id: str, subject: str | None) -> list[QuizResult]:
        with self._lock:
            return [
                result
                for result in self._results.values()
                if result.user_id == user_id and matches_subject(result.subject, subject)
            ]
