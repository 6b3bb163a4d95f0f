"""Per-subject feedback synthesis for finished sessions."""

from __future__ import annotations

from collections.abc import Sequence

from adaptive_quiz.core.models import AnswerRecord, Difficulty, QuizFeedback

STRENGTH_THRESHOLD = 80.0
WEAKNESS_THRESHOLD = 50.0


def subject_accuracy(answers: Sequence[AnswerRecord]) -> dict[str, float]:
    """Accuracy percentage per subject, in first-seen order."""
    tally: dict[str, list[int]] = {}
    for answer in answers:
        correct_total = tally.setdefault(answer.subject, [0, 0])
        correct_total[1] += 1
        if answer.is_correct:
            correct_total[0] += 1

    return {subject: correct * 100 / total for subject, (correct, total) in tally.items()}


def generate_feedback(answers: Sequence[AnswerRecord], final_difficulty: Difficulty) -> QuizFeedback:
    """
    Build strengths, weaknesses and recommendations.

    Subjects at or above 80% accuracy are strengths; below 50% are weaknesses
    and get a study recommendation. Anything in between is not mentioned.
    The difficulty reached at the end adds one closing recommendation when it
    sits at either end of the ladder.
    """
    feedback = QuizFeedback()

    for subject, accuracy in subject_accuracy(answers).items():
        if accuracy >= STRENGTH_THRESHOLD:
            feedback.strengths.append(f"Strong performance in {subject} ({accuracy:.1f}% accuracy)")
        elif accuracy < WEAKNESS_THRESHOLD:
            feedback.weaknesses.append(f"Needs improvement in {subject} ({accuracy:.1f}% accuracy)")
            feedback.recommendations.append(f"Focus on studying {subject} fundamentals")

    if final_difficulty == Difficulty.HARD:
        feedback.recommendations.append("Excellent! You're ready for advanced topics")
    elif final_difficulty == Difficulty.EASY:
        feedback.recommendations.append("Review basic concepts and practice more questions")

    return feedback
