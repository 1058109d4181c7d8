# src/school_clicker/api/v1/endpoints/scores.py
"""Score submission endpoint for the School Clicker API."""

from __future__ import annotations

from fastapi import APIRouter

from school_clicker.schemas.score import UpdateScoreRequest, UpdateScoreResponse

from ..dependencies import MAX_USER_AGENT_LENGTH, ClientInfoDep, OrchestratorDep

router = APIRouter(prefix="/scores", tags=["scores"])


@router.post("", response_model=UpdateScoreResponse)
def update_score(
    payload: UpdateScoreRequest,
    client: ClientInfoDep,
    orchestrator: OrchestratorDep,
) -> UpdateScoreResponse:
    """Submit a click delta for a school.

    Every rejection is raised as a ``ClickerError`` and rendered by the
    application's error handler.
    """
    user_agent = client.user_agent
    if payload.client_context is not None and payload.client_context.user_agent:
        user_agent = payload.client_context.user_agent[:MAX_USER_AGENT_LENGTH]

    result = orchestrator.update_score(
        school_id=payload.school_id,
        delta=payload.delta,
        session_token=payload.session_token,
        captcha_token=payload.captcha_token,
        client_ip=client.ip,
        user_agent=user_agent,
    )
    return UpdateScoreResponse(success=result.success)
