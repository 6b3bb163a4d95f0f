"""SQLAlchemy engine, session scope and ORM models."""

from adaptive_quiz.db.database import (
    check_database_health,
    create_db_engine,
    get_engine,
    get_session_factory,
    init_db,
    session_scope,
)
from adaptive_quiz.db.models import Base, QuestionRecord, QuizResultRecord

__all__ = [
    "Base",
    "QuestionRecord",
    "QuizResultRecord",
    "check_database_health",
    "create_db_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
]
