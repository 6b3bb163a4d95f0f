"""
Collaborator implementations for the adaptive engine.

- memory: In-process question repository and result store
- sql: SQLAlchemy-backed question repository and result store
"""

from adaptive_quiz.repositories.memory import (
    InMemoryQuestionRepository,
    InMemoryResultStore,
    load_questions_file,
)
from adaptive_quiz.repositories.sql import SqlQuestionRepository, SqlResultStore

__all__ = [
    "InMemoryQuestionRepository",
    "InMemoryResultStore",
    "SqlQuestionRepository",
    "SqlResultStore",
    "load_questions_file",
]
