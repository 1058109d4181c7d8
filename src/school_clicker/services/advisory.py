"""Best-effort side writes that must never mask the primary result."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvisoryOutcome:
    """Result of an advisory write; ``error`` is set when the write failed."""

    label: str
    error: SQLAlchemyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def advisory_write(label: str, write: Callable[[], object]) -> AdvisoryOutcome:
    """Run ``write`` and report, rather than raise, a storage failure."""
    try:
        write()
    except SQLAlchemyError as exc:
        logger.warning("Advisory write %r failed: %s", label, exc)
        return AdvisoryOutcome(label=label, error=exc)
    return AdvisoryOutcome(label=label)
