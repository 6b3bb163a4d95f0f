"""
SQLAlchemy models for the question bank and finished quiz results.

Implements:
- QuestionRecord: Multiple-choice question with usage statistics
- QuizResultRecord: One completed adaptive quiz, with answers, difficulty
  progression and feedback stored as JSON
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class QuestionRecord(Base):
    """
    Question bank entry.

    ``options`` is a JSON list of exactly four strings; ``correct_index``
    points into it.
    """

    __tablename__ = "questions"
    __table_args__ = (
        Index("ix_questions_selection", "subject", "difficulty", "is_active"),
        Index("ix_questions_correct_rate", "correct_rate"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_index: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[str] = mapped_column(String(100), default="")
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    explanation: Mapped[str] = mapped_column(Text, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Usage statistics
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    correct_rate: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_used: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<QuestionRecord(id={self.id}, subject={self.subject}, difficulty={self.difficulty})>"


class QuizResultRecord(Base):
    """A finished adaptive quiz."""

    __tablename__ = "quiz_results"
    __table_args__ = (Index("ix_quiz_results_user_end", "user_id", "end_time"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    is_adaptive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    question_count: Mapped[int] = mapped_column(Integer, nullable=False)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    completion_reason: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    adaptive_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    feedback: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<QuizResultRecord(id={self.id}, user={self.user_id}, score={self.score})>"
