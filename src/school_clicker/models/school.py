"""SQLAlchemy model for schools on the leaderboard."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_clicker.db.session import Base
from school_clicker.db.time import utcnow
from school_clicker.db.types import UTCDateTime

SCORE_MIN = -1_000_000_000_000
SCORE_MAX = 1_000_000_000_000


class School(Base):
    """Aggregate score target keyed by a slug derived from the school name."""

    __tablename__ = "school"
    __table_args__ = (
        CheckConstraint(
            f"score >= {SCORE_MIN} AND score <= {SCORE_MAX}",
            name="ck_school_score_bounds",
        ),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    region: Mapped[str] = mapped_column(Text, nullable=False, default="")
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
