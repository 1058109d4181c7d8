# src/school_clicker/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .school import AddSchoolRequest, AddSchoolResponse, SchoolResponse
from .score import ClientContext, UpdateScoreRequest, UpdateScoreResponse
from .session import CreateSessionRequest, CreateSessionResponse

__all__ = [
    "AddSchoolRequest", "AddSchoolResponse", "SchoolResponse",
    "ClientContext", "UpdateScoreRequest", "UpdateScoreResponse",
    "CreateSessionRequest", "CreateSessionResponse",
]
