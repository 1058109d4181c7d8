"""Session lifecycle: issuance, validation, friction and expiry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from school_clicker.core.errors import (
    SESSION_EXPIRED,
    CaptchaInvalidError,
    CaptchaRequiredError,
    ResourceExhaustedError,
    TemporarilyBlockedError,
    UnauthenticatedError,
)
from school_clicker.core.logging import short_id
from school_clicker.core.settings import Settings
from school_clicker.db.time import Clock, utcnow
from school_clicker.models import ClickerSession
from school_clicker.services.advisory import advisory_write
from school_clicker.services.captcha import ChallengeVerifier
from school_clicker.services.rate_limiter import RateLimitPolicies, RateLimiter
from school_clicker.services.standing import (
    Blocked,
    Friction,
    Standing,
    escalate,
    repay,
    standing_of,
)
from school_clicker.services.token_store import (
    SessionTokenStore,
    generate_session_token,
    hash_session_token,
)

logger = logging.getLogger(__name__)

FRICTION_REASON_RATE_LIMIT = "RATE_LIMIT"
FRICTION_REASON_TEMP_BLOCK = "TEMP_BLOCK"
FRICTION_REASON_CAPTCHA_INVALID = "CAPTCHA_INVALID"


@dataclass(frozen=True)
class SessionPolicy:
    """Timing knobs for session expiry and friction blocking."""

    ttl: timedelta = timedelta(hours=6)
    block_threshold: int = 3
    block_duration: timedelta = timedelta(minutes=15)

    @classmethod
    def from_settings(cls, config: Settings) -> SessionPolicy:
        return cls(
            ttl=timedelta(seconds=config.session_ttl_seconds),
            block_threshold=config.friction_block_threshold,
            block_duration=timedelta(seconds=config.friction_block_seconds),
        )


@dataclass(frozen=True)
class IssuedSession:
    """A freshly created session; ``token`` is the only copy of the secret."""

    token: str
    session: ClickerSession

    @property
    def expires_at(self) -> datetime:
        return self.session.expires_at


class SessionLifecycleManager:
    """Create, validate, expire and escalate friction on clicker sessions."""

    def __init__(
        self,
        store: SessionTokenStore,
        rate_limiter: RateLimiter,
        verifier: ChallengeVerifier,
        *,
        policies: RateLimitPolicies,
        session_policy: SessionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._rate_limiter = rate_limiter
        self._verifier = verifier
        self._policies = policies
        self._policy = session_policy or SessionPolicy()
        self._clock = clock

    def standing(self, record: ClickerSession, now: datetime | None = None) -> Standing:
        """Return the tagged friction standing of ``record``."""
        return standing_of(record.friction_level, record.blocked_until, now or self._clock())

    def create(self, client_ip: str, user_agent: str | None) -> IssuedSession:
        """Issue a new session for a client, subject to the per-IP budget.

        Raises:
            ResourceExhaustedError: The session-creation budget for this IP is spent.
        """
        if not self._rate_limiter.consume(client_ip, self._policies.session_create):
            logger.info("Session creation rate limit exceeded for %s", client_ip)
            raise ResourceExhaustedError("Too many session requests - slow down.")

        token = generate_session_token()
        now = self._clock()
        record = ClickerSession(
            id=hash_session_token(token),
            created_at=now,
            last_used_at=now,
            expires_at=now + self._policy.ttl,
            ip_address=client_ip,
            user_agent=user_agent,
            request_count=0,
            friction_level=0,
        )
        self._store.put(record)
        logger.debug("Issued clicker session %s for %s", short_id(record.id), client_ip)
        return IssuedSession(token=token, session=record)

    def validate(self, token: str) -> ClickerSession:
        """Resolve a client token to an admissible session record.

        Raises:
            UnauthenticatedError: Unknown or expired session (expired rows are deleted).
            TemporarilyBlockedError: The session is inside a hard block.
        """
        record = self._store.get(hash_session_token(token))
        if record is None:
            raise UnauthenticatedError("Session not found - request a new session.")
        return self._check_admissible(record)

    def ensure_admissible(self, record: ClickerSession) -> ClickerSession:
        """Re-read ``record`` and re-check expiry and block right before accepting."""
        fresh = self._store.refresh(record)
        if fresh is None:
            raise UnauthenticatedError("Session not found - request a new session.")
        return self._check_admissible(fresh)

    def _check_admissible(self, record: ClickerSession) -> ClickerSession:
        now = self._clock()
        if record.is_expired(now):
            logger.debug("Deleting expired session %s", short_id(record.id))
            self._store.delete(record)
            raise UnauthenticatedError("Session expired - request a new session.", code=SESSION_EXPIRED)

        standing = self.standing(record, now)
        if isinstance(standing, Blocked):
            raise TemporarilyBlockedError(standing.until)
        return record

    def apply_challenge(
        self,
        record: ClickerSession,
        captcha_token: str | None,
        client_ip: str,
    ) -> ClickerSession:
        """Repay one unit of friction with a verified challenge.

        A session without friction passes through untouched.

        Raises:
            CaptchaRequiredError: Friction is active and no token was supplied.
            CaptchaInvalidError: The provider rejected the token.
        """
        standing = self.standing(record)
        if not isinstance(standing, Friction):
            return record
        if not captcha_token:
            raise CaptchaRequiredError()

        if not self._verifier.verify(captcha_token, client_ip):
            failed_at = self._clock()
            advisory_write(
                "captcha-failure",
                lambda: self._record_captcha_failure(record, failed_at),
            )
            logger.info("Captcha verification failed for session %s", short_id(record.id))
            raise CaptchaInvalidError()

        now = self._clock()
        self._apply_standing(record, repay(standing))
        record.last_friction_reason = None
        record.last_captcha_solved_at = now
        self._store.put(record)
        # A repaid session starts a fresh per-session window.
        self._rate_limiter.reset(record.id, self._policies.score_session)
        logger.debug(
            "Session %s repaid friction, level now %d",
            short_id(record.id),
            record.friction_level,
        )
        return record

    def escalate_friction(self, record: ClickerSession) -> Standing:
        """Add friction after a per-session rate-limit trip and persist it.

        Returns the new standing; a ``Blocked`` result means the threshold was
        reached and ``blocked_until`` has been set.
        """
        current = self._store.refresh(record)
        if current is None:
            raise UnauthenticatedError("Session not found - request a new session.")
        now = self._clock()
        escalated = escalate(
            self.standing(current, now),
            now,
            block_threshold=self._policy.block_threshold,
            block_for=self._policy.block_duration,
        )
        self._apply_standing(current, escalated)
        current.rate_limited_at = now
        current.last_friction_reason = (
            FRICTION_REASON_TEMP_BLOCK if isinstance(escalated, Blocked) else FRICTION_REASON_RATE_LIMIT
        )
        self._store.put(current)
        logger.info(
            "Escalated friction for session %s to level %d%s",
            short_id(current.id),
            current.friction_level,
            " (blocked)" if isinstance(escalated, Blocked) else "",
        )
        return escalated

    def register_activity(
        self,
        record: ClickerSession,
        client_ip: str | None = None,
        user_agent: str | None = None,
    ) -> ClickerSession:
        """Record an accepted update and roll the expiry window forward."""
        now = self._clock()
        record.request_count = (record.request_count or 0) + 1
        record.last_used_at = now
        record.expires_at = now + self._policy.ttl
        if client_ip and client_ip != record.ip_address:
            record.ip_address = client_ip
        if user_agent and user_agent != record.user_agent:
            record.user_agent = user_agent
        return self._store.put(record)

    def purge_expired(self) -> int:
        """Delete every expired session; returns how many were removed."""
        removed = self._store.delete_expired(self._clock())
        logger.info("Purged %d expired sessions", removed)
        return removed

    def _record_captcha_failure(self, record: ClickerSession, failed_at: datetime) -> None:
        record.last_captcha_failed_at = failed_at
        record.last_friction_reason = FRICTION_REASON_CAPTCHA_INVALID
        self._store.put(record)

    @staticmethod
    def _apply_standing(record: ClickerSession, standing: Standing) -> None:
        record.friction_level = standing.level
        record.blocked_until = standing.until if isinstance(standing, Blocked) else None
