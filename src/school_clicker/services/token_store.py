"""Session token storage keyed by the hash of the client secret."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Final

import blake3
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_clicker.models import ClickerSession

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES: Final[int] = 32
SESSION_TOKEN_MIN_LENGTH: Final[int] = SESSION_TOKEN_BYTES * 2
SESSION_TOKEN_MAX_LENGTH: Final[int] = 128


def generate_session_token() -> str:
    """Return a fresh 256-bit secret encoded as 64 hex characters."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def hash_session_token(token: str) -> str:
    """Return the storage id for a client token.

    Only this one-way digest is persisted, so a leaked table cannot be
    replayed as valid tokens.
    """
    return blake3.blake3(token.encode("utf-8")).hexdigest()


class SessionTokenStore:
    """Persist ``ClickerSession`` rows; every write commits immediately."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def put(self, record: ClickerSession) -> ClickerSession:
        self._db.add(record)
        self._commit()
        return record

    def get(self, session_id: str) -> ClickerSession | None:
        """Load a record straight from the database, bypassing cached state."""
        return self._db.get(ClickerSession, session_id, populate_existing=True)

    def refresh(self, record: ClickerSession) -> ClickerSession | None:
        """Re-read ``record``; returns None when the row has been deleted."""
        return self.get(record.id)

    def delete(self, record: ClickerSession) -> None:
        self._db.delete(record)
        self._commit()

    def delete_expired(self, now: datetime) -> int:
        """Delete every session whose expiry is in the past and return the count."""
        result = self._db.execute(
            delete(ClickerSession)
            .where(ClickerSession.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        self._commit()
        return int(result.rowcount or 0)

    def _commit(self) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise
