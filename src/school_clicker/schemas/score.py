# src/school_clicker/schemas/score.py
"""Score update Pydantic schemas."""
from __future__ import annotations

from pydantic import Field, StrictFloat, StrictInt

from .base import CamelModel


class ClientContext(CamelModel):
    """Optional metadata the browser reports about itself."""

    user_agent: str | None = None


class UpdateScoreRequest(CamelModel):
    """Schema for submitting a click delta.

    Fields are optional at the schema level so that missing values are
    reported with the same error codes as malformed ones.
    """

    school_id: str | None = Field(None, description="Target school id")
    delta: StrictInt | StrictFloat | None = Field(None, description="Signed click delta")
    session_token: str | None = Field(None, description="Token from createSession")
    captcha_token: str | None = Field(None, description="Challenge response token")
    client_context: ClientContext | None = None


class UpdateScoreResponse(CamelModel):
    success: bool = True
