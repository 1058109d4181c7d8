# src/school_clicker/services/__init__.py
"""Business logic services for the School Clicker application."""

from .captcha import ChallengeVerifier
from .orchestrator import ScoreUpdateOrchestrator, ScoreUpdateResult
from .rate_limiter import FixedWindowLimiter, RateLimitPolicies, RateLimitPolicy
from .schools import SchoolRegistry
from .scores import ScoreMutator
from .sessions import IssuedSession, SessionLifecycleManager, SessionPolicy
from .token_store import SessionTokenStore

__all__ = [
    "ChallengeVerifier",
    "FixedWindowLimiter",
    "IssuedSession",
    "RateLimitPolicies",
    "RateLimitPolicy",
    "SchoolRegistry",
    "ScoreMutator",
    "ScoreUpdateOrchestrator",
    "ScoreUpdateResult",
    "SessionLifecycleManager",
    "SessionPolicy",
    "SessionTokenStore",
]
