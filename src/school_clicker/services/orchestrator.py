"""The ``update_score`` request pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from school_clicker.core.errors import (
    FrictionEscalatedError,
    InvalidArgumentError,
    ResourceExhaustedError,
    TemporarilyBlockedError,
    UnauthenticatedError,
)
from school_clicker.core.logging import short_id
from school_clicker.services.advisory import advisory_write
from school_clicker.services.rate_limiter import RateLimitPolicies, RateLimiter
from school_clicker.services.scores import ScoreMutator, validate_delta
from school_clicker.services.sessions import SessionLifecycleManager
from school_clicker.services.standing import Blocked
from school_clicker.services.token_store import (
    SESSION_TOKEN_MAX_LENGTH,
    SESSION_TOKEN_MIN_LENGTH,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreUpdateResult:
    """Outcome of an accepted update.

    ``activity_recorded`` is False when the score was applied but the
    session bookkeeping write afterwards failed.
    """

    success: bool = True
    activity_recorded: bool = True


class ScoreUpdateOrchestrator:
    """Run the admission checks in order, then apply the delta.

    Checks run cheapest first: argument shape, token shape, the per-IP
    budget, session lookup, challenge, the per-session budget. Side effects
    of earlier steps (consumed budget, friction changes) are never refunded
    when a later step rejects.
    """

    def __init__(
        self,
        sessions: SessionLifecycleManager,
        mutator: ScoreMutator,
        rate_limiter: RateLimiter,
        policies: RateLimitPolicies,
    ) -> None:
        self._sessions = sessions
        self._mutator = mutator
        self._rate_limiter = rate_limiter
        self._policies = policies

    def update_score(
        self,
        *,
        school_id: object,
        delta: object,
        session_token: object,
        client_ip: str,
        captcha_token: str | None = None,
        user_agent: str | None = None,
    ) -> ScoreUpdateResult:
        """Admit or reject one click delta for ``school_id``.

        Raises:
            InvalidArgumentError: Malformed school id or delta.
            UnauthenticatedError: Missing, malformed, unknown or expired session.
            ResourceExhaustedError: A budget is spent, friction escalated, or the
                session is blocked.
            CaptchaRequiredError: Friction is active and no challenge was sent.
            CaptchaInvalidError: The challenge failed verification.
            NotFoundError: Unknown school.
            FailedPreconditionError: The delta would push the score out of range.
        """
        if not isinstance(school_id, str) or not school_id.strip():
            raise InvalidArgumentError("School ID is required.")
        school_id = school_id.strip()
        value = validate_delta(delta)

        if (
            not isinstance(session_token, str)
            or not SESSION_TOKEN_MIN_LENGTH <= len(session_token) <= SESSION_TOKEN_MAX_LENGTH
        ):
            raise UnauthenticatedError("Session token missing or invalid - refresh and try again.")

        if not self._rate_limiter.consume(client_ip, self._policies.score_ip):
            logger.info("Score rate limit exceeded for %s", client_ip)
            raise ResourceExhaustedError("Too many requests - slow down.")

        record = self._sessions.validate(session_token)
        record = self._sessions.apply_challenge(record, captcha_token, client_ip)

        if not self._rate_limiter.consume(record.id, self._policies.score_session):
            standing = self._sessions.escalate_friction(record)
            if isinstance(standing, Blocked):
                raise TemporarilyBlockedError(standing.until)
            raise FrictionEscalatedError()

        record = self._sessions.ensure_admissible(record)
        self._mutator.apply(school_id, value)

        outcome = advisory_write(
            "register-activity",
            lambda: self._sessions.register_activity(record, client_ip, user_agent),
        )
        logger.debug(
            "Accepted delta %d for %s from session %s",
            value,
            school_id,
            short_id(record.id),
        )
        return ScoreUpdateResult(success=True, activity_recorded=outcome.ok)
