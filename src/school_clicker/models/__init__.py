# src/school_clicker/models/__init__.py
"""SQLAlchemy models for the School Clicker service."""

from .clicker_session import ClickerSession
from .school import SCORE_MAX, SCORE_MIN, School

__all__ = [
    "ClickerSession",
    "School",
    "SCORE_MAX",
    "SCORE_MIN",
]
