"""Fixed-window rate limiting on ``limits`` storage (memory or Redis)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.errors import StorageError
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from school_clicker.core.settings import Settings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """``points`` consumable units per key within each ``window_seconds`` window."""

    namespace: str
    points: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.points <= 0 or self.window_seconds <= 0:
            raise ValueError("rate-limit points and window must be positive")


@dataclass(frozen=True)
class RateLimitPolicies:
    """The independent budgets the request pipeline relies on."""

    session_create: RateLimitPolicy
    school_create: RateLimitPolicy
    score_ip: RateLimitPolicy
    score_session: RateLimitPolicy

    @classmethod
    def from_settings(cls, config: Settings) -> RateLimitPolicies:
        return cls(
            session_create=RateLimitPolicy(
                "session-create",
                config.session_create_points,
                config.session_create_window_seconds,
            ),
            school_create=RateLimitPolicy(
                "school-create",
                config.school_create_points,
                config.school_create_window_seconds,
            ),
            score_ip=RateLimitPolicy(
                "score-ip",
                config.score_ip_points,
                config.score_ip_window_seconds,
            ),
            score_session=RateLimitPolicy(
                "score-session",
                config.score_session_points,
                config.score_session_window_seconds,
            ),
        )

    def describe(self) -> dict[str, dict[str, int]]:
        """Return a JSON-friendly view of every budget."""
        return {
            policy.namespace: {
                "points": policy.points,
                "window_seconds": policy.window_seconds,
            }
            for policy in (self.session_create, self.school_create, self.score_ip, self.score_session)
        }


class RateLimiter(Protocol):
    """Consume-if-available counter keyed by (policy namespace, key)."""

    def consume(self, key: str, policy: RateLimitPolicy) -> bool: ...

    def reset(self, key: str, policy: RateLimitPolicy) -> None: ...


def _limit_item(policy: RateLimitPolicy) -> RateLimitItem:
    return RateLimitItemPerSecond(policy.points, policy.window_seconds)


class FixedWindowLimiter:
    """Fixed-window budgets counted in a ``limits`` storage backend.

    With a ``fallback`` configured, storage failures (Redis unreachable) are
    logged and counted by the fallback instead, so limiting degrades to
    per-instance rather than disappearing.
    """

    def __init__(self, storage: Storage, *, fallback: FixedWindowLimiter | None = None) -> None:
        self._limiter = FixedWindowRateLimiter(storage)
        self._fallback = fallback

    @classmethod
    def in_memory(cls) -> FixedWindowLimiter:
        return cls(storage_from_string("memory://"))

    def consume(self, key: str, policy: RateLimitPolicy) -> bool:
        try:
            return self._limiter.hit(_limit_item(policy), policy.namespace, key)
        except StorageError as exc:
            if self._fallback is None:
                raise
            logger.warning("Rate limit storage unavailable, using local counters: %s", exc)
            return self._fallback.consume(key, policy)

    def reset(self, key: str, policy: RateLimitPolicy) -> None:
        if self._fallback is not None:
            self._fallback.reset(key, policy)
        try:
            self._limiter.clear(_limit_item(policy), policy.namespace, key)
        except StorageError as exc:
            if self._fallback is None:
                raise
            logger.warning("Rate limit reset failed for %s: %s", policy.namespace, exc)


def build_rate_limiter(config: Settings) -> RateLimiter:
    """Construct the limiter selected by ``RATE_LIMIT_BACKEND``."""
    backend = config.rate_limit_backend.lower()
    if backend == "memory":
        return FixedWindowLimiter.in_memory()
    if backend == "redis":
        storage = storage_from_string(config.redis_url, wrap_exceptions=True)
        return FixedWindowLimiter(storage, fallback=FixedWindowLimiter.in_memory())
    raise ValueError(f"Unknown rate limit backend: {config.rate_limit_backend!r}")


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    """Return the process-wide rate limiter instance."""
    limiter = build_rate_limiter(settings)
    logger.info("Rate limiter backend: %s", settings.rate_limit_backend)
    return limiter


@lru_cache(maxsize=1)
def get_rate_limit_policies() -> RateLimitPolicies:
    """Return the configured rate-limit budgets."""
    return RateLimitPolicies.from_settings(settings)
