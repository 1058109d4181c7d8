"""School registration and the public leaderboard."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from school_clicker.core.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    ResourceExhaustedError,
)
from school_clicker.db.time import Clock, utcnow
from school_clicker.models import School
from school_clicker.services.rate_limiter import RateLimitPolicies, RateLimiter

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_LEADERBOARD_SIZE = 500


def generate_school_id(name: str) -> str:
    """Derive the school slug: lowercase, drop punctuation, drop whitespace."""
    return _WHITESPACE_RE.sub("", _DISALLOWED_RE.sub("", name.lower()))


def _required(value: str | None, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{label} is required.")
    return value.strip()


class SchoolRegistry:
    """Add schools to the leaderboard and list them by score."""

    def __init__(
        self,
        db: Session,
        rate_limiter: RateLimiter,
        policies: RateLimitPolicies,
        clock: Clock = utcnow,
    ) -> None:
        self._db = db
        self._rate_limiter = rate_limiter
        self._policies = policies
        self._clock = clock

    def add_school(
        self,
        *,
        name: str | None,
        region: str | None,
        requester_email: str | None,
        client_ip: str,
        logo_url: str | None = None,
    ) -> School:
        """Register a new school with a zero score.

        Args:
            name: Display name; the id is derived from it.
            region: Free-form region label.
            requester_email: Contact address of whoever asked for the school.
            client_ip: Caller address used for the creation budget.
            logo_url: Optional logo location.

        Returns:
            The persisted school.

        Raises:
            ResourceExhaustedError: The caller's school-creation budget is spent.
            InvalidArgumentError: A field is missing or malformed.
            AlreadyExistsError: A school with the derived id already exists.
        """
        if not self._rate_limiter.consume(client_ip, self._policies.school_create):
            logger.info("School creation rate limit exceeded for %s", client_ip)
            raise ResourceExhaustedError("Too many add-school requests - slow down.")

        clean_name = _required(name, "School name")
        clean_region = _required(region, "Region")
        clean_email = _required(requester_email, "Email")
        if not _EMAIL_RE.match(clean_email):
            raise InvalidArgumentError("Please provide a valid email address.")

        school_id = generate_school_id(clean_name)
        if not school_id:
            raise InvalidArgumentError("Unable to generate school ID. Please use a different name.")
        if self._db.get(School, school_id) is not None:
            raise AlreadyExistsError("This school is already on the leaderboard.")

        school = School(
            id=school_id,
            name=clean_name,
            region=clean_region,
            logo_url=(logo_url or "").strip() or None,
            requested_by_email=clean_email,
            score=0,
            created_at=self._clock(),
        )
        self._db.add(school)
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            raise AlreadyExistsError("This school is already on the leaderboard.") from exc
        except SQLAlchemyError:
            self._db.rollback()
            raise

        logger.info("Added school %s (%s) requested from %s", school_id, clean_region, client_ip)
        return school

    def list_schools(self, limit: int = 100) -> Sequence[School]:
        """Return schools ordered by score, highest first."""
        limit = max(1, min(limit, MAX_LEADERBOARD_SIZE))
        stmt = select(School).order_by(School.score.desc(), School.name).limit(limit)
        return self._db.scalars(stmt).all()
