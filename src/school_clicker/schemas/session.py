# src/school_clicker/schemas/session.py
"""Session-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class CreateSessionRequest(CamelModel):
    """Optional client hints sent when asking for a session."""

    user_agent: str | None = Field(None, description="Client user agent, overrides the header")


class CreateSessionResponse(CamelModel):
    """A new session token; the client must keep it, the server only stores its hash."""

    session_token: str
    expires_at: datetime
    captcha_provider: str
