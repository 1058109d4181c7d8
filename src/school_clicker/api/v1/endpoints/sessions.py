# src/school_clicker/api/v1/endpoints/sessions.py
"""Session issuance endpoint for the School Clicker API."""

from __future__ import annotations

from fastapi import APIRouter, status

from school_clicker.schemas.session import CreateSessionRequest, CreateSessionResponse

from ..dependencies import MAX_USER_AGENT_LENGTH, ClientInfoDep, SessionManagerDep, VerifierDep

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    client: ClientInfoDep,
    sessions: SessionManagerDep,
    verifier: VerifierDep,
    payload: CreateSessionRequest | None = None,
) -> CreateSessionResponse:
    """Issue a new anonymous clicker session.

    Args:
        client: Caller address and user agent
        sessions: Session lifecycle manager
        verifier: Challenge verifier, used to advertise the provider
        payload: Optional client hints

    Returns:
        The secret session token and its expiry
    """
    user_agent = client.user_agent
    if payload is not None and payload.user_agent:
        user_agent = payload.user_agent[:MAX_USER_AGENT_LENGTH]

    issued = sessions.create(client.ip, user_agent)
    return CreateSessionResponse(
        session_token=issued.token,
        expires_at=issued.expires_at,
        captcha_provider=verifier.provider,
    )
