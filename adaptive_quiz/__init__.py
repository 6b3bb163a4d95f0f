"""
Adaptive Quiz Engine - difficulty-adaptive multiple-choice quizzes.

Runs a learner through questions whose difficulty follows their streaks,
then scores the attempt with difficulty weights and synthesizes feedback.
"""

__version__ = "1.0.0"
