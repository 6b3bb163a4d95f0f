"""
Difficulty adjustment for adaptive sessions.

A pure transition function over the easy < medium < hard ladder. Streak
counters are maintained by the caller and passed in already updated for
the answer being evaluated.
"""

from __future__ import annotations

from adaptive_quiz.core.models import DIFFICULTY_LADDER, Difficulty

# Consecutive answers needed to move one level
STREAK_THRESHOLD = 2


def next_difficulty(
    current: Difficulty,
    is_correct: bool,
    consecutive_correct: int = 0,
    consecutive_wrong: int = 0,
) -> Difficulty:
    """
    Compute the difficulty of the next question.

    Args:
        current: Difficulty of the session before this answer
        is_correct: Whether the answer just submitted was correct
        consecutive_correct: Correct streak including this answer
        consecutive_wrong: Wrong streak including this answer

    Returns:
        One level up after a long enough correct streak, one level down after
        a long enough wrong streak, otherwise ``current``. Never leaves the ladder.
    """
    index = DIFFICULTY_LADDER.index(current)

    if is_correct:
        if consecutive_correct >= STREAK_THRESHOLD and index < len(DIFFICULTY_LADDER) - 1:
            return DIFFICULTY_LADDER[index + 1]
    elif consecutive_wrong >= STREAK_THRESHOLD and index > 0:
        return DIFFICULTY_LADDER[index - 1]

    return current
