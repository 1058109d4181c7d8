"""SQLAlchemy model for anonymous clicker sessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_clicker.db.session import Base
from school_clicker.db.types import UTCDateTime


class ClickerSession(Base):
    """One anonymous browser's right to submit clicks.

    The primary key is the hash of the secret token handed to the client; the
    secret itself is never stored.
    """

    __tablename__ = "clicker_session"
    __table_args__ = (
        CheckConstraint("friction_level >= 0", name="ck_clicker_session_friction"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    last_used_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    ip_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    friction_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocked_until: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Audit trail only; never consulted for control flow.
    last_friction_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_captcha_solved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_captcha_failed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    rate_limited_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    def is_expired(self, now: datetime) -> bool:
        """Return True once ``now`` is past the expiry timestamp."""
        return now > self.expires_at
