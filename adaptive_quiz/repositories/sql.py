"""
SQLAlchemy-backed question repository and result store.

Each call runs in its own ``session_scope`` transaction, so instances are
safe to share between request threads.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, sessionmaker

from adaptive_quiz.core.models import (
    ANY_SUBJECT,
    AdaptiveData,
    AnswerRecord,
    CompletionReason,
    Difficulty,
    DifficultyStep,
    Question,
    QuizFeedback,
    QuizResult,
)
from adaptive_quiz.db.database import session_scope
from adaptive_quiz.db.models import QuestionRecord, QuizResultRecord
from adaptive_quiz.repositories.usage import UsageStats, updated_usage_stats
from adaptive_quiz.session.session_store import utcnow


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def question_from_record(row: QuestionRecord) -> Question:
    return Question(
        id=row.id,
        text=row.text,
        options=list(row.options),
        correct_index=row.correct_index,
        subject=row.subject,
        difficulty=Difficulty(row.difficulty),
        topic=row.topic or "",
        explanation=row.explanation or "",
        is_active=row.is_active,
        usage_count=row.usage_count,
        correct_rate=row.correct_rate,
        average_time=row.average_time,
        last_used=_aware(row.last_used),
    )


def record_from_question(question: Question) -> QuestionRecord:
    return QuestionRecord(
        id=question.id,
        text=question.text,
        options=list(question.options),
        correct_index=question.correct_index,
        subject=question.subject,
        topic=question.topic,
        difficulty=question.difficulty.value,
        explanation=question.explanation,
        is_active=question.is_active,
        usage_count=question.usage_count,
        correct_rate=question.correct_rate,
        average_time=question.average_time,
        last_used=question.last_used,
    )


def result_from_record(row: QuizResultRecord) -> QuizResult:
    adaptive: dict[str, Any] = row.adaptive_data
    return QuizResult(
        result_id=row.id,
        user_id=row.user_id,
        subject=row.subject,
        score=row.score,
        correct_answers=row.correct_answers,
        total_questions=row.total_questions,
        question_count=row.question_count,
        time_spent_seconds=row.time_spent_seconds,
        passed=row.passed,
        start_time=_aware(row.start_time),
        end_time=_aware(row.end_time),
        completion_reason=CompletionReason(row.completion_reason),
        answers=[
            AnswerRecord(
                question_id=a["question_id"],
                subject=a["subject"],
                topic=a.get("topic", ""),
                selected_index=a["selected_index"],
                correct_index=a["correct_index"],
                is_correct=a["is_correct"],
                time_spent_seconds=a["time_spent_seconds"],
                difficulty=Difficulty(a["difficulty"]),
            )
            for a in row.answers
        ],
        adaptive_data=AdaptiveData(
            starting_difficulty=Difficulty(adaptive["starting_difficulty"]),
            final_difficulty=Difficulty(adaptive["final_difficulty"]),
            difficulty_progression=[
                DifficultyStep(
                    question_number=step["question_number"],
                    difficulty=Difficulty(step["difficulty"]),
                    is_correct=step["is_correct"],
                )
                for step in adaptive.get("difficulty_progression", [])
            ],
        ),
        feedback=QuizFeedback(**row.feedback),
    )


class SqlQuestionRepository:
    """Question bank stored in the ``questions`` table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def add_many(self, questions: Iterable[Question]) -> int:
        """Insert or overwrite questions. Returns how many were written."""
        count = 0
        with session_scope(self._session_factory) as session:
            for question in questions:
                session.merge(record_from_question(question))
                count += 1
        logger.info(f"Stored {count} questions")
        return count

    def fetch_adaptive(
        self,
        difficulty: Difficulty,
        subject: str | None,
        exclude_ids: Iterable[str],
        limit: int = 1,
    ) -> list[Question]:
        query = select(QuestionRecord).where(
            QuestionRecord.difficulty == difficulty.value,
            QuestionRecord.is_active.is_(True),
        )

        excluded = list(exclude_ids)
        if excluded:
            query = query.where(QuestionRecord.id.not_in(excluded))

        if subject and subject != ANY_SUBJECT:
            query = query.where(QuestionRecord.subject == subject)

        # Least used first, then highest correct rate
        query = query.order_by(
            QuestionRecord.usage_count.asc(),
            QuestionRecord.correct_rate.desc(),
        ).limit(limit)

        with session_scope(self._session_factory) as session:
            return [question_from_record(row) for row in session.scalars(query)]

    def get_question(self, question_id: str) -> Question | None:
        with session_scope(self._session_factory) as session:
            row = session.get(QuestionRecord, question_id)
            return question_from_record(row) if row else None

    def record_usage(self, question_id: str, is_correct: bool, time_spent_seconds: int) -> None:
        with session_scope(self._session_factory) as session:
            row = session.execute(
                select(QuestionRecord).where(QuestionRecord.id == question_id).with_for_update()
            ).scalar_one_or_none()
            if row is None:
                raise KeyError(f"Question {question_id} not found")

            stats = updated_usage_stats(
                UsageStats(row.usage_count, row.correct_rate, row.average_time),
                is_correct,
                time_spent_seconds,
            )
            row.usage_count, row.correct_rate, row.average_time = stats
            row.last_used = self._clock()

    def list_subjects(self) -> list[str]:
        query = (
            select(QuestionRecord.subject)
            .where(QuestionRecord.is_active.is_(True))
            .distinct()
            .order_by(QuestionRecord.subject)
        )
        with session_scope(self._session_factory) as session:
            return list(session.scalars(query))


class SqlResultStore:
    """Finished results stored in the ``quiz_results`` table."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def save(self, result: QuizResult) -> str:
        result_id = result.result_id or uuid.uuid4().hex
        data = result.to_dict()

        with session_scope(self._session_factory) as session:
            session.add(
                QuizResultRecord(
                    id=result_id,
                    user_id=result.user_id,
                    subject=result.subject,
                    is_adaptive=True,
                    score=result.score,
                    correct_answers=result.correct_answers,
                    total_questions=result.total_questions,
                    question_count=result.question_count,
                    time_spent_seconds=result.time_spent_seconds,
                    passed=result.passed,
                    completion_reason=result.completion_reason.value,
                    start_time=result.start_time,
                    end_time=result.end_time,
                    answers=data["answers"],
                    adaptive_data=data["adaptive_data"],
                    feedback=data["feedback"],
                )
            )

        logger.debug(f"Quiz result {result_id} saved for user {result.user_id}")
        return result_id

    def get(self, result_id: str) -> QuizResult | None:
        with session_scope(self._session_factory) as session:
            row = session.get(QuizResultRecord, result_id)
            return result_from_record(row) if row else None

    def list_for_user(
        self,
        user_id: str,
        limit: int = 10,
        offset: int = 0,
        subject: str | None = None,
    ) -> list[QuizResult]:
        query = (
            _user_results(select(QuizResultRecord), user_id, subject)
            .order_by(QuizResultRecord.end_time.desc())
            .offset(offset)
            .limit(limit)
        )
        with session_scope(self._session_factory) as session:
            return [result_from_record(row) for row in session.scalars(query)]

    def count_for_user(self, user_id: str, subject: str | None = None) -> int:
        query = _user_results(select(func.count()).select_from(QuizResultRecord), user_id, subject)
        with session_scope(self._session_factory) as session:
            return session.scalar(query) or 0


def _user_results(query: Select, user_id: str, subject: str | None) -> Select:
    query = query.where(QuizResultRecord.user_id == user_id)
    if subject and subject != ANY_SUBJECT:
        query = query.where(QuizResultRecord.subject == subject)
    return query
