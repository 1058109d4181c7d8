# src/school_clicker/scripts/purge_sessions.py
"""
Cron job that deletes expired clicker sessions.

Expired sessions are already rejected (and deleted) when a client presents
them; this sweep removes the ones that are never presented again. Run it
hourly or daily.
"""
from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import Session

from school_clicker.core.logging import configure_logging
from school_clicker.core.settings import settings
from school_clicker.db.session import SessionLocal
from school_clicker.db.time import Clock, utcnow
from school_clicker.services.token_store import SessionTokenStore

logger = logging.getLogger(__name__)


def purge_expired_sessions(db: Session, clock: Clock = utcnow) -> int:
    """Delete every expired session and return how many were removed.

    Args:
        db: Database session
        clock: Source of the current time
    """
    removed = SessionTokenStore(db).delete_expired(clock())
    logger.info("Purged %d expired sessions", removed)
    return removed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired clicker sessions")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (defaults to LOG_LEVEL)",
    )
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    db = SessionLocal()
    try:
        removed = purge_expired_sessions(db)
    finally:
        db.close()
    print(f"Purged {removed} expired sessions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
