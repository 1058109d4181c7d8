"""System and transparency endpoints for the School Clicker API."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from school_clicker.core.settings import settings
from school_clicker.services.scores import MAX_NEGATIVE_DELTA, MAX_POSITIVE_DELTA

from ..dependencies import PoliciesDep, SessionDep, SessionPolicyDep, VerifierDep

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
def get_public_config(
    policies: PoliciesDep,
    session_policy: SessionPolicyDep,
    verifier: VerifierDep,
) -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; suitable for client UIs that
    want to show budgets or preload the challenge widget.

    Args:
        policies: Rate-limit budgets
        session_policy: Session expiry and blocking parameters
        verifier: Challenge verifier

    Returns:
        Dictionary with app metadata, rate limits, session and captcha settings
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "rate_limits": policies.describe(),
        "sessions": {
            "ttl_seconds": int(session_policy.ttl.total_seconds()),
            "block_threshold": session_policy.block_threshold,
            "block_seconds": int(session_policy.block_duration.total_seconds()),
        },
        "scores": {
            "max_positive_delta": MAX_POSITIVE_DELTA,
            "max_negative_delta": MAX_NEGATIVE_DELTA,
        },
        "captcha": {
            "provider": verifier.provider,
            "configured": verifier.configured,
        },
    }


@router.get("/health")
def get_system_health(db: SessionDep) -> dict[str, object]:
    """Health check that also probes the database.

    Args:
        db: Database session

    Returns:
        Dictionary with overall status, database status and version
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as exc:
        db_status = f"unhealthy: {exc}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {"database": db_status},
        "version": settings.app_version,
    }
