"""
Configuration settings for the adaptive quiz engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///adaptive_quiz.db",
        description="SQLAlchemy connection string for questions and results",
    )

    # ========================================
    # Quiz Rules
    # ========================================
    quiz_min_questions: int = Field(
        default=5,
        ge=1,
        description="Smallest question count a session may request",
    )
    quiz_max_questions: int = Field(
        default=50,
        ge=1,
        description="Largest question count a session may request",
    )
    quiz_default_questions: int = Field(
        default=10,
        description="Question count used when the caller does not pick one",
    )
    quiz_passing_score: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Weighted score (0-100) required to pass",
    )

    # ========================================
    # Sessions
    # ========================================
    session_ttl_minutes: int = Field(
        default=60,
        ge=1,
        description="Idle minutes before an unfinished session is evicted",
    )

    # ========================================
    # External Collaborators
    # ========================================
    collaborator_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound on any question repository or result store call",
    )
    collaborator_workers: int = Field(
        default=8,
        ge=1,
        description="Worker threads used to run collaborator calls with a timeout",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    @model_validator(mode="after")
    def _check_question_bounds(self) -> "Settings":
        if self.quiz_min_questions > self.quiz_max_questions:
            raise ValueError("quiz_min_questions must not exceed quiz_max_questions")
        if not self.quiz_min_questions <= self.quiz_default_questions <= self.quiz_max_questions:
            raise ValueError("quiz_default_questions must lie within the min/max bounds")
        return self

    def get_quiz_config(self) -> dict:
        """Get quiz rule configuration as a dictionary."""
        return {
            "min_questions": self.quiz_min_questions,
            "max_questions": self.quiz_max_questions,
            "default_questions": self.quiz_default_questions,
            "passing_score": self.quiz_passing_score,
            "session_ttl_minutes": self.session_ttl_minutes,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
