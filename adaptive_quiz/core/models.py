"""
Domain models for adaptive quiz sessions.

Implements:
- Difficulty: Ordered difficulty ladder (easy < medium < hard)
- Question: A multiple-choice question with usage statistics
- AnswerRecord: Immutable record of one submitted answer
- QuizSession: Mutable state of one in-progress adaptive quiz
- QuizResult: Final, persisted outcome of a completed session

Sessions are owned by the session store and only mutated by the engine.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

# Subject sentinel meaning "questions from any subject"
ANY_SUBJECT = "all"

OPTION_COUNT = 4


class Difficulty(str, Enum):
    """Question difficulty levels, ordered from easiest to hardest."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return DIFFICULTY_LADDER.index(self)


DIFFICULTY_LADDER: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)

STARTING_DIFFICULTY = Difficulty.MEDIUM


class CompletionReason(str, Enum):
    """Why a session reached the Completed state."""

    TARGET_REACHED = "target_reached"
    EXHAUSTED = "exhausted"


@dataclass
class PresentedQuestion:
    """A question as shown to the learner (no answer key, no statistics)."""

    id: str
    text: str
    options: list[str]
    subject: str
    topic: str
    difficulty: Difficulty

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.text,
            "options": list(self.options),
            "subject": self.subject,
            "topic": self.topic,
            "difficulty": self.difficulty.value,
        }


@dataclass
class Question:
    """A multiple-choice question from the question bank."""

    id: str
    text: str
    options: list[str]
    correct_index: int
    subject: str
    difficulty: Difficulty
    topic: str = ""
    explanation: str = ""
    is_active: bool = True

    # Usage statistics (maintained by the repository)
    usage_count: int = 0
    correct_rate: int = 0  # 0-100
    average_time: int = 0  # seconds
    last_used: datetime | None = None

    def present(self) -> PresentedQuestion:
        """Strip the answer key for display."""
        return PresentedQuestion(
            id=self.id,
            text=self.text,
            options=list(self.options),
            subject=self.subject,
            topic=self.topic,
            difficulty=self.difficulty,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        """Create from a question bank entry."""
        return cls(
            id=str(data["id"]),
            text=data.get("question") or data["text"],
            options=list(data["options"]),
            correct_index=int(data["correct_index"]),
            subject=data["subject"],
            difficulty=Difficulty(data.get("difficulty", Difficulty.MEDIUM.value)),
            topic=data.get("topic", ""),
            explanation=data.get("explanation", ""),
            is_active=data.get("is_active", True),
            usage_count=data.get("usage_count", 0),
            correct_rate=data.get("correct_rate", 0),
            average_time=data.get("average_time", 0),
        )


@dataclass(frozen=True)
class AnswerRecord:
    """One submitted answer. Never modified after creation."""

    question_id: str
    subject: str
    topic: str
    selected_index: int
    correct_index: int
    is_correct: bool
    time_spent_seconds: int
    difficulty: Difficulty

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "subject": self.subject,
            "topic": self.topic,
            "selected_index": self.selected_index,
            "correct_index": self.correct_index,
            "is_correct": self.is_correct,
            "time_spent_seconds": self.time_spent_seconds,
            "difficulty": self.difficulty.value,
        }


@dataclass
class QuizSession:
    """State of one user's in-progress adaptive quiz."""

    session_id: str
    user_id: str
    subject: str
    question_count: int
    start_time: datetime
    last_activity_at: datetime
    current_question_number: int = 1
    current_difficulty: Difficulty = STARTING_DIFFICULTY
    consecutive_correct: int = 0
    consecutive_wrong: int = 0
    used_question_ids: list[str] = field(default_factory=list)
    answers: list[AnswerRecord] = field(default_factory=list)

    @property
    def current_question_id(self) -> str | None:
        """The question issued last and still awaiting an answer."""
        return self.used_question_ids[-1] if self.used_question_ids else None

    @property
    def is_last_question(self) -> bool:
        return self.current_question_number >= self.question_count

    def issue_question(self, question_id: str) -> None:
        """Add a newly issued question to the exclusion set."""
        if question_id in self.used_question_ids:
            raise ValueError(f"Question {question_id} already issued in session {self.session_id}")
        self.used_question_ids.append(question_id)

    def record_answer(self, answer: AnswerRecord) -> None:
        """Append an answer and update the streak counters."""
        self.answers.append(answer)
        if answer.is_correct:
            self.consecutive_correct += 1
            self.consecutive_wrong = 0
        else:
            self.consecutive_wrong += 1
            self.consecutive_correct = 0

    def is_expired(self, ttl: timedelta, now: datetime) -> bool:
        """Check if the session has been idle longer than ``ttl``."""
        return now - self.last_activity_at > ttl

    def clone(self) -> "QuizSession":
        return copy.deepcopy(self)


@dataclass
class DifficultyStep:
    """Difficulty and outcome of one answered question."""

    question_number: int
    difficulty: Difficulty
    is_correct: bool


@dataclass
class AdaptiveData:
    """How difficulty evolved over a session."""

    starting_difficulty: Difficulty
    final_difficulty: Difficulty
    difficulty_progression: list[DifficultyStep] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "starting_difficulty": self.starting_difficulty.value,
            "final_difficulty": self.final_difficulty.value,
            "difficulty_progression": [
                {
                    "question_number": step.question_number,
                    "difficulty": step.difficulty.value,
                    "is_correct": step.is_correct,
                }
                for step in self.difficulty_progression
            ],
        }


@dataclass
class QuizFeedback:
    """Strengths, weaknesses and recommendations for a finished quiz."""

    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
        }


@dataclass
class QuizResult:
    """Outcome of a completed adaptive quiz, handed to the result store."""

    user_id: str
    subject: str
    score: int
    correct_answers: int
    total_questions: int  # answered
    question_count: int  # requested
    time_spent_seconds: int
    passed: bool
    start_time: datetime
    end_time: datetime
    answers: list[AnswerRecord]
    adaptive_data: AdaptiveData
    feedback: QuizFeedback
    completion_reason: CompletionReason = CompletionReason.TARGET_REACHED
    result_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.result_id,
            "user_id": self.user_id,
            "subject": self.subject,
            "is_adaptive": True,
            "score": self.score,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "question_count": self.question_count,
            "time_spent_seconds": self.time_spent_seconds,
            "passed": self.passed,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "completion_reason": self.completion_reason.value,
            "answers": [answer.to_dict() for answer in self.answers],
            "adaptive_data": self.adaptive_data.to_dict(),
            "feedback": self.feedback.to_dict(),
        }


@dataclass
class LastAnswerFeedback:
    """Immediate feedback on the answer just submitted."""

    is_correct: bool
    correct_index: int
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_correct": self.is_correct,
            "correct_index": self.correct_index,
            "explanation": self.explanation,
        }


@dataclass
class StartSessionResponse:
    """Returned by ``start_session``."""

    session_id: str
    question: PresentedQuestion
    current_question_number: int
    total_questions: int
    current_difficulty: Difficulty

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "current_question_number": self.current_question_number,
            "total_questions": self.total_questions,
            "current_difficulty": self.current_difficulty.value,
            "question": self.question.to_dict(),
        }


@dataclass
class SubmitAnswerResponse:
    """Returned by ``submit_answer``; either the next question or the result."""

    completed: bool
    last_answer: LastAnswerFeedback
    total_questions: int
    current_question_number: int | None = None
    current_difficulty: Difficulty | None = None
    next_question: PresentedQuestion | None = None
    result: QuizResult | None = None
    completion_reason: CompletionReason | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "last_answer": self.last_answer.to_dict(),
            "total_questions": self.total_questions,
            "current_question_number": self.current_question_number,
            "current_difficulty": self.current_difficulty.value if self.current_difficulty else None,
            "next_question": self.next_question.to_dict() if self.next_question else None,
            "result": self.result.to_dict() if self.result else None,
            "completion_reason": self.completion_reason.value if self.completion_reason else None,
            "message": self.message,
        }


@dataclass
class ResultPage:
    """One page of a user's finished quizzes, newest first."""

    results: list[QuizResult]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "pagination": {
                "current": self.page,
                "pages": self.pages,
                "total": self.total,
                "limit": self.limit,
            },
        }
