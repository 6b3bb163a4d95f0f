"""API routers for the adaptive quiz engine."""

from adaptive_quiz.api.routers import adaptive_router

__all__ = ["adaptive_router"]
