"""
Adaptive Quiz API Router.

Thin HTTP adapter over AdaptiveQuizEngine:
- Start an adaptive quiz session
- Submit an answer and receive the next question or the final result
- List the caller's finished quiz results, or fetch one
- List the subjects questions are available for

Authentication is handled upstream; the caller is identified by the
``X-User-Id`` header.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field

from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.core.errors import QuizEngineError

router = APIRouter()

ERROR_STATUS = {
    "validation_error": 400,
    "not_found": 404,
    "no_questions_available": 404,
    "store_error": 503,
}


# ========================================
# Request/Response Models
# ========================================


class StartQuizRequest(BaseModel):
    """Request model for starting an adaptive quiz."""

    subject: str | None = Field(None, min_length=1, description="Subject filter ('all' or omitted for any)")
    question_count: int | None = Field(None, description="Number of questions (default from settings)")


class SubmitAnswerRequest(BaseModel):
    """Request model for submitting an answer."""

    session_id: str = Field(..., min_length=1, description="Session id returned by /start")
    question_id: str = Field(..., min_length=1, description="Question being answered")
    selected_answer: int = Field(..., ge=0, le=3, description="Selected option index (0-3)")
    time_spent: int = Field(0, ge=0, description="Seconds spent on the question")


class QuestionResponse(BaseModel):
    """A question without its answer key."""

    id: str
    question: str
    options: list[str]
    subject: str
    topic: str
    difficulty: str


class LastAnswerResponse(BaseModel):
    is_correct: bool
    correct_index: int
    explanation: str


class DifficultyStepResponse(BaseModel):
    question_number: int
    difficulty: str
    is_correct: bool


class AdaptiveDataResponse(BaseModel):
    starting_difficulty: str
    final_difficulty: str
    difficulty_progression: list[DifficultyStepResponse]


class FeedbackResponse(BaseModel):
    strengths: list[str]
    weaknesses: list[str]
    recommendations: list[str]


class QuizResultResponse(BaseModel):
    """A finished adaptive quiz."""

    id: str | None
    user_id: str
    subject: str
    is_adaptive: bool
    score: int
    correct_answers: int
    total_questions: int
    question_count: int
    time_spent_seconds: int
    passed: bool
    start_time: datetime
    end_time: datetime
    completion_reason: str
    answers: list[dict[str, Any]]
    adaptive_data: AdaptiveDataResponse
    feedback: FeedbackResponse


class PaginationResponse(BaseModel):
    current: int
    pages: int
    total: int
    limit: int


class ResultPageResponse(BaseModel):
    """A page of finished quizzes."""

    results: list[QuizResultResponse]
    pagination: PaginationResponse


class StartQuizResponse(BaseModel):
    session_id: str
    current_question_number: int
    total_questions: int
    current_difficulty: str
    question: QuestionResponse


class SubmitAnswerResponse(BaseModel):
    completed: bool
    last_answer: LastAnswerResponse
    total_questions: int
    current_question_number: int | None
    current_difficulty: str | None
    next_question: QuestionResponse | None
    result: QuizResultResponse | None
    completion_reason: str | None
    message: str | None


# ========================================
# Dependencies
# ========================================


def get_quiz_engine(request: Request) -> AdaptiveQuizEngine:
    """FastAPI dependency returning the engine built at startup."""
    return request.app.state.engine


def get_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller identity as forwarded by the authenticating proxy."""
    return x_user_id


def _raise_http(exc: QuizEngineError) -> NoReturn:
    raise HTTPException(status_code=ERROR_STATUS.get(exc.kind, 500), detail=exc.to_dict()) from exc


# ========================================
# Adaptive Quiz Endpoints
# ========================================


@router.post(
    "/adaptive/start",
    response_model=StartQuizResponse,
    summary="Start adaptive quiz",
)
def start_adaptive_quiz(
    request: StartQuizRequest,
    user_id: str = Depends(get_user_id),
    engine: AdaptiveQuizEngine = Depends(get_quiz_engine),
) -> dict[str, Any]:
    """
    Start an adaptive quiz.

    The first question is served at medium difficulty; later questions
    follow the learner's streaks.
    """
    try:
        response = engine.start_session(
            user_id=user_id,
            subject=request.subject,
            question_count=request.question_count,
        )
    except QuizEngineError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.exception("Failed to start adaptive quiz")
        raise HTTPException(status_code=500, detail=str(exc))

    return response.to_dict()


@router.post(
    "/adaptive/answer",
    response_model=SubmitAnswerResponse,
    summary="Submit answer",
)
def submit_adaptive_answer(
    request: SubmitAnswerRequest,
    user_id: str = Depends(get_user_id),
    engine: AdaptiveQuizEngine = Depends(get_quiz_engine),
) -> dict[str, Any]:
    """
    Submit an answer and get the next question.

    When the last question is answered, or no unused question remains at the
    next difficulty, ``completed`` is true and ``result`` holds the score.
    """
    try:
        response = engine.submit_answer(
            session_id=request.session_id,
            user_id=user_id,
            question_id=request.question_id,
            selected_index=request.selected_answer,
            time_spent_seconds=request.time_spent,
        )
    except QuizEngineError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.exception(f"Failed to submit answer for session {request.session_id}")
        raise HTTPException(status_code=500, detail=str(exc))

    return response.to_dict()


@router.get(
    "/results",
    response_model=ResultPageResponse,
    summary="List quiz results",
)
def list_results(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Results per page"),
    subject: str | None = Query(None, min_length=1, description="Subject filter ('all' for any)"),
    user_id: str = Depends(get_user_id),
    engine: AdaptiveQuizEngine = Depends(get_quiz_engine),
) -> dict[str, Any]:
    """Get the caller's finished quizzes, newest first."""
    try:
        result_page = engine.list_results(user_id, page=page, limit=limit, subject=subject)
    except QuizEngineError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.exception(f"Failed to list results for user {user_id}")
        raise HTTPException(status_code=500, detail=str(exc))

    return result_page.to_dict()


@router.get(
    "/results/{result_id}",
    response_model=QuizResultResponse,
    summary="Get quiz result",
)
def get_result(
    result_id: str,
    user_id: str = Depends(get_user_id),
    engine: AdaptiveQuizEngine = Depends(get_quiz_engine),
) -> dict[str, Any]:
    """Get one of the caller's finished quizzes."""
    try:
        result = engine.get_result(user_id, result_id)
    except QuizEngineError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.exception(f"Failed to get result {result_id}")
        raise HTTPException(status_code=500, detail=str(exc))

    return result.to_dict()


@router.get(
    "/subjects",
    response_model=list[str],
    summary="List subjects",
    dependencies=[Depends(get_user_id)],
)
def list_subjects(
    engine: AdaptiveQuizEngine = Depends(get_quiz_engine),
) -> list[str]:
    """Subjects with at least one active question, sorted."""
    try:
        return engine.list_subjects()
    except QuizEngineError as exc:
        _raise_http(exc)
