"""
Adaptive Quiz Engine.

Components:
- next_difficulty: Streak-driven difficulty transitions
- calculate_adaptive_score: Difficulty-weighted percentage score
- generate_feedback: Per-subject strengths, weaknesses, recommendations
- AdaptiveQuizEngine: Session orchestration (start_session, submit_answer)
"""
from adaptive_quiz.adaptive.difficulty import STREAK_THRESHOLD, next_difficulty
from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.adaptive.feedback import generate_feedback, subject_accuracy
from adaptive_quiz.adaptive.scoring import (
    DIFFICULTY_WEIGHTS,
    calculate_adaptive_score,
    difficulty_breakdown,
)

__all__ = [
    # Main engine
    "AdaptiveQuizEngine",
    # Pure helpers
    "next_difficulty",
    "calculate_adaptive_score",
    "difficulty_breakdown",
    "generate_feedback",
    "subject_accuracy",
    # Constants
    "STREAK_THRESHOLD",
    "DIFFICULTY_WEIGHTS",
]
