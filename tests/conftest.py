"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.config import Settings
from adaptive_quiz.core.models import Difficulty, Question
from adaptive_quiz.repositories.memory import InMemoryQuestionRepository, InMemoryResultStore

SUBJECTS = ("python", "networking")
QUESTIONS_PER_LEVEL = 5


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API, SQL database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_question(
    question_id: str,
    difficulty: Difficulty = Difficulty.MEDIUM,
    subject: str = "python",
    correct_index: int = 0,
    **overrides,
) -> Question:
    """Build a question whose right answer is ``correct_index`` (0 by default)."""
    fields = dict(
        id=question_id,
        text=f"Question {question_id}?",
        options=["right", "wrong", "wrong too", "also wrong"],
        correct_index=correct_index,
        subject=subject,
        difficulty=difficulty,
        topic=f"{subject} basics",
        explanation=f"Explanation for {question_id}",
    )
    fields.update(overrides)
    return Question(**fields)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Default quiz rules, isolated from any local .env file."""
    return Settings(_env_file=None, collaborator_timeout_seconds=2.0)


@pytest.fixture
def question_bank():
    """Five questions per difficulty for each of two subjects; option 0 is always right."""
    return [
        make_question(f"{subject}-{level.value}-{n}", level, subject)
        for subject in SUBJECTS
        for level in Difficulty
        for n in range(1, QUESTIONS_PER_LEVEL + 1)
    ]


@pytest.fixture
def question_repo(question_bank, clock):
    """In-memory question repository loaded with the question bank."""
    return InMemoryQuestionRepository(question_bank, clock=clock)


@pytest.fixture
def result_store():
    """Empty in-memory result store."""
    return InMemoryResultStore()


@pytest.fixture
def quiz_engine(question_repo, result_store, settings, clock):
    """Engine wired to in-memory collaborators and the fake clock."""
    engine = AdaptiveQuizEngine(
        questions=question_repo,
        results=result_store,
        settings=settings,
        clock=clock,
    )
    yield engine
    engine.close()


@pytest.fixture
def question_factory():
    """Provide the ``make_question`` builder."""
    return make_question
