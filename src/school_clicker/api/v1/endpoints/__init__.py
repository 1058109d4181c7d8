# src/school_clicker/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .schools import router as schools_router
from .scores import router as scores_router
from .sessions import router as sessions_router
from .system import router as system_router

__all__ = [
    "schools_router",
    "scores_router",
    "sessions_router",
    "system_router",
]
