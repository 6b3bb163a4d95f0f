"""Running per-question usage statistics."""

from __future__ import annotations

from typing import NamedTuple

from adaptive_quiz.adaptive.scoring import round_half_up


class UsageStats(NamedTuple):
    usage_count: int
    correct_rate: int  # 0-100
    average_time: int  # seconds


def updated_usage_stats(
    stats: UsageStats,
    is_correct: bool,
    time_spent_seconds: int,
) -> UsageStats:
    """
    Fold one answer into the running statistics.

    The correct rate is stored as a whole percentage, so the previous number
    of correct answers is reconstructed from it before adding this answer.
    """
    usage_count = stats.usage_count + 1

    previous_correct = round_half_up(stats.correct_rate / 100 * (usage_count - 1))
    correct = previous_correct + (1 if is_correct else 0)
    correct_rate = round_half_up(correct * 100 / usage_count)

    total_time = stats.average_time * (usage_count - 1)
    average_time = round_half_up((total_time + time_spent_seconds) / usage_count)

    return UsageStats(usage_count, correct_rate, average_time)
