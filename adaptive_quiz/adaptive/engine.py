"""
Adaptive Quiz Engine: session orchestration.

Runs one user through a sequence of questions whose difficulty follows their
performance:

    start_session ──► Active ──submit_answer──► Active ... ──► Completed
                                   │                              ▲
                                   └── no unused question left ───┘

- Difficulty -> adaptive.difficulty
- Scoring -> adaptive.scoring
- Feedback -> adaptive.feedback
- State -> session.session_store
- Questions/results -> injected collaborators (core.interfaces)

A session is created by ``start_session`` and deleted exactly once, when its
result is produced. Calls out to collaborators are bounded by a timeout and
surface as StoreError.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Any, TypeVar

from loguru import logger

from adaptive_quiz.adaptive.difficulty import next_difficulty
from adaptive_quiz.adaptive.feedback import generate_feedback
from adaptive_quiz.adaptive.scoring import calculate_adaptive_score, round_half_up
from adaptive_quiz.config import Settings, get_settings
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
    OPTION_COUNT,
    STARTING_DIFFICULTY,
    AdaptiveData,
    AnswerRecord,
    CompletionReason,
    DifficultyStep,
    LastAnswerFeedback,
    QuizResult,
    QuizSession,
    ResultPage,
    StartSessionResponse,
    SubmitAnswerResponse,
)
from adaptive_quiz.session.session_store import InMemorySessionStore, utcnow

T = TypeVar("T")

EXHAUSTED_MESSAGE = "No more questions available"


def new_session_id() -> str:
    return f"adaptive_{uuid.uuid4().hex}"


class AdaptiveQuizEngine:
    """
    Orchestrates adaptive quiz sessions.

    Holds no quiz state of its own; everything lives in the session store,
    so one engine can serve many concurrent requests.
    """

    def __init__(
        self,
        questions: QuestionRepository,
        results: ResultStore,
        sessions: InMemorySessionStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_session_id,
    ):
        self.settings = settings if settings is not None else get_settings()
        self.questions = questions
        self.results = results
        if sessions is None:
            sessions = InMemorySessionStore(
                ttl=timedelta(minutes=self.settings.session_ttl_minutes),
                clock=clock,
            )
        self.sessions = sessions
        self._clock = clock
        self._id_factory = id_factory
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.collaborator_workers,
            thread_name_prefix="quiz-collaborator",
        )

    @property
    def active_sessions(self) -> int:
        return len(self.sessions)

    def close(self) -> None:
        """Stop the collaborator worker threads."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ========================================
    # Operations
    # ========================================

    def start_session(
        self,
        user_id: str,
        subject: str | None = None,
        question_count: int | None = None,
    ) -> StartSessionResponse:
        """
        Start a new adaptive quiz.

        Args:
            user_id: Owner of the new session
            subject: Subject filter (None means any subject)
            question_count: Questions to ask (defaults to configured value)

        Returns:
            StartSessionResponse with the first question at medium difficulty

        Raises:
            ValidationError: Bad user id, empty subject, or count out of bounds
            NoQuestionsAvailableError: Nothing matches the starting criteria
            StoreError: The question repository failed
        """
        self._require_text(user_id, "user_id")
        subject = self._normalize_subject(subject)
        question_count = self._validate_question_count(question_count)

        candidates = self._call(
            "fetch_adaptive",
            self.questions.fetch_adaptive,
            STARTING_DIFFICULTY,
            subject,
            [],
            1,
        )
        if not candidates:
            logger.info(f"No starting question for subject={subject} difficulty={STARTING_DIFFICULTY.value}")
            raise NoQuestionsAvailableError(
                "No questions available for the selected criteria",
                subject=subject,
                difficulty=STARTING_DIFFICULTY.value,
            )

        first = candidates[0]
        now = self._clock()
        session = QuizSession(
            session_id=self._id_factory(),
            user_id=user_id,
            subject=subject,
            question_count=question_count,
            start_time=now,
            last_activity_at=now,
        )
        session.issue_question(first.id)
        self.sessions.create(session)

        logger.info(
            f"Session {session.session_id} started for user {user_id} "
            f"(subject={subject}, questions={question_count})"
        )

        return StartSessionResponse(
            session_id=session.session_id,
            question=first.present(),
            current_question_number=session.current_question_number,
            total_questions=question_count,
            current_difficulty=session.current_difficulty,
        )

    def submit_answer(
        self,
        session_id: str,
        user_id: str,
        question_id: str,
        selected_index: int,
        time_spent_seconds: int = 0,
    ) -> SubmitAnswerResponse:
        """
        Record an answer and either issue the next question or finish the quiz.

        The whole read-mutate-write sequence runs under the session's lock.
        The session in the store only changes once every step succeeded.

        Raises:
            ValidationError: Bad input, or ``question_id`` is not the question
                currently awaiting an answer in this session
            NotFoundError: Unknown/expired session, session owned by someone
                else, or unknown question
            StoreError: A collaborator failed or timed out
        """
        self._require_text(session_id, "session_id")
        self._require_text(user_id, "user_id")
        self._require_text(question_id, "question_id")
        self._validate_selected_index(selected_index)
        self._validate_time_spent(time_spent_seconds)

        with self.sessions.lock(session_id):
            session = self.sessions.get(session_id)
            if session.user_id != user_id:
                logger.warning(f"User {user_id} tried to answer in session {session_id} owned by another user")
                raise NotFoundError("Quiz session not found or unauthorized", session_id=session_id)

            if question_id != session.current_question_id:
                raise ValidationError(
                    "Question is not awaiting an answer in this session",
                    session_id=session_id,
                    question_id=question_id,
                )

            question = self._call("get_question", self.questions.get_question, question_id)
            if question is None:
                raise NotFoundError("Question not found", question_id=question_id)

            is_correct = selected_index == question.correct_index
            session.record_answer(
                AnswerRecord(
                    question_id=question.id,
                    subject=question.subject,
                    topic=question.topic,
                    selected_index=selected_index,
                    correct_index=question.correct_index,
                    is_correct=is_correct,
                    time_spent_seconds=time_spent_seconds,
                    difficulty=question.difficulty,
                )
            )
            self._call(
                "record_usage",
                self.questions.record_usage,
                question.id,
                is_correct,
                time_spent_seconds,
            )

            last_answer = LastAnswerFeedback(
                is_correct=is_correct,
                correct_index=question.correct_index,
                explanation=question.explanation,
            )

            if session.is_last_question:
                return self._finalize(session, last_answer, CompletionReason.TARGET_REACHED)

            self._advance_difficulty(session, is_correct)

            candidates = self._call(
                "fetch_adaptive",
                self.questions.fetch_adaptive,
                session.current_difficulty,
                session.subject,
                list(session.used_question_ids),
                1,
            )
            if not candidates:
                logger.info(
                    f"Session {session_id} ran out of {session.current_difficulty.value} questions "
                    f"after {len(session.answers)}/{session.question_count}"
                )
                return self._finalize(session, last_answer, CompletionReason.EXHAUSTED)

            next_question = candidates[0]
            if next_question.id in session.used_question_ids:
                raise StoreError(
                    "Question repository returned an excluded question",
                    operation="fetch_adaptive",
                    question_id=next_question.id,
                )
            session.issue_question(next_question.id)
            session.current_question_number += 1
            self.sessions.replace(session_id, session)

            return SubmitAnswerResponse(
                completed=False,
                last_answer=last_answer,
                total_questions=session.question_count,
                current_question_number=session.current_question_number,
                current_difficulty=session.current_difficulty,
                next_question=next_question.present(),
            )

    # ========================================
    # Results & catalog
    # ========================================

    def get_result(self, user_id: str, result_id: str) -> QuizResult:
        """
        Fetch one finished quiz owned by ``user_id``.

        Raises:
            NotFoundError: Unknown id, or the result belongs to someone else
        """
        self._require_text(user_id, "user_id")
        self._require_text(result_id, "result_id")

        result = self._call("get_result", self.results.get, result_id)
        if result is None or result.user_id != user_id:
            raise NotFoundError("Quiz result not found", result_id=result_id)
        return result

    def list_results(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        subject: str | None = None,
    ) -> ResultPage:
        """Page through a user's finished quizzes, newest first."""
        self._require_text(user_id, "user_id")
        for name, value in (("page", page), ("limit", limit)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{name} must be a positive integer", field=name)
        subject = self._normalize_subject(subject)

        results = self._call(
            "list_results",
            self.results.list_for_user,
            user_id,
            limit,
            (page - 1) * limit,
            subject,
        )
        total = self._call("count_results", self.results.count_for_user, user_id, subject)
        return ResultPage(results=results, page=page, limit=limit, total=total)

    def list_subjects(self) -> list[str]:
        """Subjects that currently have active questions."""
        return self._call("list_subjects", self.questions.list_subjects)

    # ========================================
    # State transitions
    # ========================================

    def _advance_difficulty(self, session: QuizSession, is_correct: bool) -> None:
        """Move the session along the difficulty ladder; a level change restarts the streak."""
        updated = next_difficulty(
            session.current_difficulty,
            is_correct,
            session.consecutive_correct,
            session.consecutive_wrong,
        )
        if updated == session.current_difficulty:
            return

        logger.debug(
            f"Session {session.session_id}: {session.current_difficulty.value} -> {updated.value}"
        )
        if is_correct:
            session.consecutive_correct = 0
        else:
            session.consecutive_wrong = 0
        session.current_difficulty = updated

    def _finalize(
        self,
        session: QuizSession,
        last_answer: LastAnswerFeedback,
        reason: CompletionReason,
    ) -> SubmitAnswerResponse:
        """Produce the result, hand it to the result store and drop the session."""
        result = self._build_result(session, reason)

        try:
            result.result_id = self._call("save_result", self.results.save, result)
        except StoreError as exc:
            logger.error(f"Session {session.session_id} finished but its result was not saved: {exc.message}")
            raise StoreError(
                f"Quiz completed but the result could not be saved: {exc.message}",
                result=result,
                session_id=session.session_id,
            ) from exc
        finally:
            self.sessions.delete(session.session_id)

        logger.info(
            f"Session {session.session_id} completed ({reason.value}): "
            f"score={result.score} correct={result.correct_answers}/{result.total_questions}"
        )

        return SubmitAnswerResponse(
            completed=True,
            last_answer=last_answer,
            total_questions=session.question_count,
            current_question_number=session.current_question_number,
            current_difficulty=session.current_difficulty,
            result=result,
            completion_reason=reason,
            message=EXHAUSTED_MESSAGE if reason == CompletionReason.EXHAUSTED else None,
        )

    def _build_result(self, session: QuizSession, reason: CompletionReason) -> QuizResult:
        end_time = self._clock()
        answers = list(session.answers)
        score = calculate_adaptive_score(answers)

        return QuizResult(
            user_id=session.user_id,
            subject=session.subject,
            score=score,
            correct_answers=sum(1 for answer in answers if answer.is_correct),
            total_questions=len(answers),
            question_count=session.question_count,
            time_spent_seconds=max(0, round_half_up((end_time - session.start_time).total_seconds())),
            passed=score >= self.settings.quiz_passing_score,
            start_time=session.start_time,
            end_time=end_time,
            answers=answers,
            adaptive_data=AdaptiveData(
                starting_difficulty=STARTING_DIFFICULTY,
                final_difficulty=session.current_difficulty,
                difficulty_progression=[
                    DifficultyStep(
                        question_number=number,
                        difficulty=answer.difficulty,
                        is_correct=answer.is_correct,
                    )
                    for number, answer in enumerate(answers, start=1)
                ],
            ),
            feedback=generate_feedback(answers, session.current_difficulty),
            completion_reason=reason,
        )

    # ========================================
    # Collaborator calls
    # ========================================

    def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Run a collaborator call with the configured timeout."""
        timeout = self.settings.collaborator_timeout_seconds
        future = self._executor.submit(func, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            logger.error(f"{operation} timed out after {timeout}s")
            raise StoreError(f"{operation} timed out after {timeout}s", operation=operation) from exc
        except QuizEngineError:
            raise
        except Exception as exc:
            logger.error(f"{operation} failed: {exc}")
            raise StoreError(f"{operation} failed: {exc}", operation=operation) from exc

    # ========================================
    # Input validation
    # ========================================

    @staticmethod
    def _require_text(value: Any, name: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{name} is required", field=name)

    @staticmethod
    def _normalize_subject(subject: str | None) -> str:
        if subject is None:
            return ANY_SUBJECT
        if not isinstance(subject, str) or not subject.strip():
            raise ValidationError("Subject cannot be empty if provided", field="subject")
        return subject.strip()

    def _validate_question_count(self, question_count: int | None) -> int:
        if question_count is None:
            return self.settings.quiz_default_questions

        low, high = self.settings.quiz_min_questions, self.settings.quiz_max_questions
        if isinstance(question_count, bool) or not isinstance(question_count, int) or not low <= question_count <= high:
            raise ValidationError(
                f"Question count must be between {low} and {high}",
                field="question_count",
            )
        return question_count

    @staticmethod
    def _validate_selected_index(selected_index: int) -> None:
        if (
            isinstance(selected_index, bool)
            or not isinstance(selected_index, int)
            or not 0 <= selected_index < OPTION_COUNT
        ):
            raise ValidationError(
                f"Selected answer must be between 0 and {OPTION_COUNT - 1}",
                field="selected_index",
            )

    @staticmethod
    def _validate_time_spent(time_spent_seconds: int) -> None:
        if isinstance(time_spent_seconds, bool) or not isinstance(time_spent_seconds, int) or time_spent_seconds < 0:
            raise ValidationError("Time spent must be a non-negative number of seconds", field="time_spent_seconds")
