"""Logging setup for the School Clicker service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once and set the package log level.

    Args:
        level: Level name such as ``"DEBUG"`` or ``"INFO"``.
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("school_clicker").setLevel(resolved)


def short_id(session_id: str | None) -> str:
    """Return a truncated session id that is safe to log."""
    if not session_id:
        return "-"
    return session_id[:12]
