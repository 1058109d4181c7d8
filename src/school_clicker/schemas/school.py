# src/school_clicker/schemas/school.py
"""School-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import CamelModel


class AddSchoolRequest(CamelModel):
    """Schema for asking to add a school to the leaderboard."""

    school_name: str | None = Field(None, description="Display name of the school")
    region: str | None = Field(None, description="Region label")
    requester_email: str | None = Field(None, description="Contact email of the requester")
    logo_url: str | None = Field(None, description="Optional logo URL")


class AddSchoolResponse(CamelModel):
    success: bool = True
    school_id: str


class SchoolResponse(CamelModel):
    """A leaderboard entry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    region: str
    logo_url: str | None = None
    score: int
    created_at: datetime
