"""
Error taxonomy for the adaptive quiz engine.

Every failure surfaced to callers carries a ``kind`` tag so transport layers
can map it without inspecting messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from adaptive_quiz.core.models import QuizResult


class QuizEngineError(Exception):
    """Base class for structured engine failures."""

    kind = "engine_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.details}


class ValidationError(QuizEngineError):
    """Malformed caller input. Never retried automatically."""

    kind = "validation_error"


class NotFoundError(QuizEngineError):
    """Unknown or unauthorized session, or unknown question."""

    kind = "not_found"


class NoQuestionsAvailableError(QuizEngineError):
    """No starting question matches the requested criteria."""

    kind = "no_questions_available"


class StoreError(QuizEngineError):
    """An external collaborator failed or timed out."""

    kind = "store_error"

    def __init__(self, message: str, result: QuizResult | None = None, **details: Any):
        super().__init__(message, **details)
        # Set when the result store failed after the result was computed
        self.result = result

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data
