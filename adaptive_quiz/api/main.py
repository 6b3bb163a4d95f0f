"""
FastAPI application for the adaptive quiz engine.

Provides REST API for:
- Adaptive quiz sessions (start, answer)
- Finished quiz results
- Health and configuration
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from adaptive_quiz import __version__
from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.config import get_settings
from adaptive_quiz.db.database import check_database_health, init_db
from adaptive_quiz.logging_config import configure_logging
from adaptive_quiz.repositories.sql import SqlQuestionRepository, SqlResultStore


def build_default_engine() -> AdaptiveQuizEngine:
    """Engine wired to the configured SQL database."""
    init_db()
    return AdaptiveQuizEngine(
        questions=SqlQuestionRepository(),
        results=SqlResultStore(),
        settings=get_settings(),
    )


def create_app(engine: AdaptiveQuizEngine | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        engine: Pre-built engine (tests inject one with in-memory collaborators).
            When omitted, an SQL-backed engine is built at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        configure_logging()
        logger.info("Starting adaptive quiz service...")
        app.state.engine = engine or build_default_engine()
        app.state.uses_database = engine is None

        yield

        logger.info("Shutting down adaptive quiz service...")
        app.state.engine.close()

    app = FastAPI(
        title="Adaptive Quiz Engine",
        description="""
    Difficulty-adaptive multiple-choice quizzes.

    ## Flow

    ```
    POST /api/quizzes/adaptive/start   -> first question (medium)
    POST /api/quizzes/adaptive/answer  -> next question, harder or easier
    ...                                -> completed: weighted score + feedback
    ```
    """,
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Health"])
    def root() -> dict[str, str]:
        """Root endpoint returning service info."""
        return {
            "service": "adaptive-quiz",
            "version": __version__,
            "status": "ok",
        }

    @app.get("/health", tags=["Health"])
    def health_check() -> dict[str, Any]:
        """Health check with database connectivity and session count."""
        components: dict[str, Any] = {
            "active_sessions": app.state.engine.active_sessions,
        }
        errors = {}

        if app.state.uses_database:
            db_status, db_error = check_database_health()
            components["database"] = db_status
            if db_error:
                errors["database"] = db_error
        else:
            db_status = "ok"
            components["database"] = "not_configured"

        result: dict[str, Any] = {
            "status": "healthy" if db_status == "ok" else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": components,
        }
        if errors:
            result["errors"] = errors
        return result

    @app.get("/config", tags=["Health"])
    def get_config() -> dict[str, Any]:
        """Get current quiz configuration (non-sensitive)."""
        return app.state.engine.settings.get_quiz_config()

    from adaptive_quiz.api.routers import adaptive_router

    app.include_router(adaptive_router.router, prefix="/api/quizzes", tags=["Adaptive Quiz"])

    return app
