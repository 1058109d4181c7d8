"""Bounded, atomic score mutation for schools."""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Final

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_clicker.core.errors import FailedPreconditionError, InvalidArgumentError, NotFoundError
from school_clicker.models import SCORE_MAX, SCORE_MIN, School

logger = logging.getLogger(__name__)

MAX_POSITIVE_DELTA: Final[int] = 500
MAX_NEGATIVE_DELTA: Final[int] = -1000


def validate_delta(delta: object) -> int:
    """Return ``delta`` as an int, or raise when it is not an acceptable click delta.

    Accepts ints and integral floats in ``[MAX_NEGATIVE_DELTA, MAX_POSITIVE_DELTA]``
    excluding zero. Booleans, NaN and infinities are rejected.

    Raises:
        InvalidArgumentError: The delta is malformed or outside the per-call caps.
    """
    if isinstance(delta, bool) or not isinstance(delta, Real):
        raise InvalidArgumentError("Delta must be a number.")
    if isinstance(delta, int):
        value = delta
    else:
        if not math.isfinite(delta):
            raise InvalidArgumentError("Delta must be a finite number.")
        if delta != int(delta):
            raise InvalidArgumentError("Delta must be a whole number.")
        value = int(delta)

    if value == 0:
        raise InvalidArgumentError("Delta must be non-zero.")
    if value > MAX_POSITIVE_DELTA or value < MAX_NEGATIVE_DELTA:
        raise InvalidArgumentError(
            f"Delta must be between {MAX_NEGATIVE_DELTA} and {MAX_POSITIVE_DELTA}."
        )
    return value


class ScoreMutator:
    """Apply click deltas to school scores with a single conditional UPDATE."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def apply(self, school_id: str, delta: object) -> None:
        """Add ``delta`` to the school's score if the result stays in bounds.

        The bound check and the write happen in one statement, so concurrent
        updates can never push the stored score outside the aggregate range.

        Raises:
            InvalidArgumentError: ``delta`` fails validation.
            NotFoundError: No school has this id.
            FailedPreconditionError: The update would leave the score out of bounds.
        """
        value = validate_delta(delta)
        new_score = School.score + value
        stmt = (
            update(School)
            .where(
                School.id == school_id,
                new_score >= SCORE_MIN,
                new_score <= SCORE_MAX,
            )
            .values(score=new_score)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self._db.execute(stmt)
            if result.rowcount == 0:
                exists = self._db.scalar(select(School.id).where(School.id == school_id))
                self._db.rollback()
                if exists is None:
                    raise NotFoundError(f"School {school_id!r} not found.")
                raise FailedPreconditionError("Score update would exceed the allowed range.")
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise

        logger.debug("Applied delta %d to school %s", value, school_id)
