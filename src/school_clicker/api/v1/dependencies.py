"""Shared API dependencies: database, client context and service wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from school_clicker.core.settings import settings
from school_clicker.db.session import get_db
from school_clicker.db.time import Clock, utcnow
from school_clicker.services.captcha import ChallengeVerifier, get_challenge_verifier
from school_clicker.services.orchestrator import ScoreUpdateOrchestrator
from school_clicker.services.rate_limiter import (
    RateLimitPolicies,
    RateLimiter,
    get_rate_limit_policies,
    get_rate_limiter,
)
from school_clicker.services.schools import SchoolRegistry
from school_clicker.services.scores import ScoreMutator
from school_clicker.services.sessions import SessionLifecycleManager, SessionPolicy
from school_clicker.services.token_store import SessionTokenStore

UNKNOWN_CLIENT = "unknown"
MAX_USER_AGENT_LENGTH = 500


@dataclass(frozen=True)
class ClientInfo:
    """Caller metadata taken from the HTTP request."""

    ip: str
    user_agent: str | None


def get_client_info(request: Request) -> ClientInfo:
    """Extract the caller's address and user agent.

    The first ``X-Forwarded-For`` hop wins, falling back to the socket peer.
    """
    ip = UNKNOWN_CLIENT
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip() or ip
    elif request.client and request.client.host:
        ip = request.client.host

    user_agent = request.headers.get("user-agent")
    if user_agent is not None:
        user_agent = user_agent[:MAX_USER_AGENT_LENGTH]
    return ClientInfo(ip=ip, user_agent=user_agent)


def get_rate_limiter_dep() -> RateLimiter:
    """Return the shared rate limiter."""
    return get_rate_limiter()


def get_rate_limit_policies_dep() -> RateLimitPolicies:
    """Return the configured rate-limit budgets."""
    return get_rate_limit_policies()


def get_challenge_verifier_dep() -> ChallengeVerifier:
    """Return the shared challenge verifier."""
    return get_challenge_verifier()


def get_session_policy_dep() -> SessionPolicy:
    return SessionPolicy.from_settings(settings)


def get_clock_dep() -> Clock:
    return utcnow


# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter_dep)]
PoliciesDep = Annotated[RateLimitPolicies, Depends(get_rate_limit_policies_dep)]
VerifierDep = Annotated[ChallengeVerifier, Depends(get_challenge_verifier_dep)]
SessionPolicyDep = Annotated[SessionPolicy, Depends(get_session_policy_dep)]
ClockDep = Annotated[Clock, Depends(get_clock_dep)]


def get_session_manager(
    db: SessionDep,
    rate_limiter: RateLimiterDep,
    verifier: VerifierDep,
    policies: PoliciesDep,
    session_policy: SessionPolicyDep,
    clock: ClockDep,
) -> SessionLifecycleManager:
    """Build a session manager bound to the request's database session."""
    return SessionLifecycleManager(
        SessionTokenStore(db),
        rate_limiter,
        verifier,
        policies=policies,
        session_policy=session_policy,
        clock=clock,
    )


SessionManagerDep = Annotated[SessionLifecycleManager, Depends(get_session_manager)]


def get_score_orchestrator(
    db: SessionDep,
    sessions: SessionManagerDep,
    rate_limiter: RateLimiterDep,
    policies: PoliciesDep,
) -> ScoreUpdateOrchestrator:
    """Build the score pipeline for one request."""
    return ScoreUpdateOrchestrator(sessions, ScoreMutator(db), rate_limiter, policies)


def get_school_registry(
    db: SessionDep,
    rate_limiter: RateLimiterDep,
    policies: PoliciesDep,
    clock: ClockDep,
) -> SchoolRegistry:
    return SchoolRegistry(db, rate_limiter, policies, clock=clock)


OrchestratorDep = Annotated[ScoreUpdateOrchestrator, Depends(get_score_orchestrator)]
SchoolRegistryDep = Annotated[SchoolRegistry, Depends(get_school_registry)]
