# src/school_clicker/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import schools_router, scores_router, sessions_router, system_router

__all__ = [
    "schools_router",
    "scores_router",
    "sessions_router",
    "system_router",
]
