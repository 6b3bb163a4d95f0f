"""
Weighted scoring for adaptive sessions.

Correct answers on harder questions earn more than correct answers on easy
ones, so two learners with the same number of correct answers can score
differently depending on the difficulty they reached.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from adaptive_quiz.core.models import DIFFICULTY_LADDER, AnswerRecord, Difficulty

DIFFICULTY_WEIGHTS: dict[Difficulty, float] = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def calculate_adaptive_score(answers: Sequence[AnswerRecord]) -> int:
    """
    Calculate the weighted percentage score.

    score = round(100 * sum(weight * correct) / sum(weight))

    Returns 0 when no answers were recorded.
    """
    possible = sum(DIFFICULTY_WEIGHTS[answer.difficulty] for answer in answers)
    if possible <= 0:
        return 0

    earned = sum(DIFFICULTY_WEIGHTS[answer.difficulty] for answer in answers if answer.is_correct)
    return round_half_up(earned * 100 / possible)


def difficulty_breakdown(answers: Sequence[AnswerRecord]) -> dict[str, dict[str, int]]:
    """Correct/total counts per difficulty level."""
    breakdown = {level.value: {"correct": 0, "total": 0} for level in DIFFICULTY_LADDER}

    for answer in answers:
        bucket = breakdown[answer.difficulty.value]
        bucket["total"] += 1
        if answer.is_correct:
            bucket["correct"] += 1

    return breakdown
