"""
Core Module - Shared domain models, errors and collaborator interfaces.

Components:
- models: Difficulty, Question, AnswerRecord, QuizSession, QuizResult
- errors: Structured error taxonomy (kind-tagged)
- interfaces: QuestionRepository and ResultStore protocols
"""

from adaptive_quiz.core.errors import (
    NoQuestionsAvailableError,
    NotFoundError,
    QuizEngineError,
    StoreError,
    ValidationError,
)
from adaptive_quiz.core.interfaces import QuestionRepository, ResultStore
from adaptive_quiz.core.models import (
    ANY_SUBJECT,
    DIFFICULTY_LADDER,
    STARTING_DIFFICULTY,
    AdaptiveData,
    AnswerRecord,
    CompletionReason,
    Difficulty,
    DifficultyStep,
    LastAnswerFeedback,
    PresentedQuestion,
    Question,
    QuizFeedback,
    QuizResult,
    QuizSession,
    ResultPage,
    StartSessionResponse,
    SubmitAnswerResponse,
)

__all__ = [
    # Models
    "ANY_SUBJECT",
    "DIFFICULTY_LADDER",
    "STARTING_DIFFICULTY",
    "AdaptiveData",
    "AnswerRecord",
    "CompletionReason",
    "Difficulty",
    "DifficultyStep",
    "LastAnswerFeedback",
    "PresentedQuestion",
    "Question",
    "QuizFeedback",
    "QuizResult",
    "QuizSession",
    "ResultPage",
    "StartSessionResponse",
    "SubmitAnswerResponse",
    # Errors
    "QuizEngineError",
    "ValidationError",
    "NotFoundError",
    "NoQuestionsAvailableError",
    "StoreError",
    # Interfaces
    "QuestionRepository",
    "ResultStore",
]
