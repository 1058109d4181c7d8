# src/school_clicker/api/v1/endpoints/schools.py
"""School registration and leaderboard endpoints for the School Clicker API."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from school_clicker.schemas.school import AddSchoolRequest, AddSchoolResponse, SchoolResponse

from ..dependencies import ClientInfoDep, SchoolRegistryDep

router = APIRouter(prefix="/schools", tags=["schools"])


@router.post("", response_model=AddSchoolResponse, status_code=status.HTTP_201_CREATED)
def add_school(
    payload: AddSchoolRequest,
    client: ClientInfoDep,
    registry: SchoolRegistryDep,
) -> AddSchoolResponse:
    """Add a school to the leaderboard with a zero score."""
    school = registry.add_school(
        name=payload.school_name,
        region=payload.region,
        requester_email=payload.requester_email,
        logo_url=payload.logo_url,
        client_ip=client.ip,
    )
    return AddSchoolResponse(success=True, school_id=school.id)


@router.get("", response_model=list[SchoolResponse])
def list_schools(
    registry: SchoolRegistryDep,
    limit: int = Query(100, ge=1, le=500),
) -> list[SchoolResponse]:
    """Return the leaderboard, highest score first."""
    return [SchoolResponse.model_validate(school) for school in registry.list_schools(limit)]
