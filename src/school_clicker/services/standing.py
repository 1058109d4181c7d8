"""Explicit friction standing of a session.

The persisted record only carries ``friction_level`` and ``blocked_until``.
This module turns those into a tagged value (``Active``, ``Friction`` or
``Blocked``) and defines the only two transitions: ``escalate`` on a
rate-limit trip and ``repay`` on a solved challenge.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class Active:
    """No friction; score updates flow without a challenge."""

    @property
    def level(self) -> int:
        return 0


@dataclass(frozen=True)
class Friction:
    """A challenge must be solved before the next score update."""

    level: int

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError("friction standing requires a level of at least 1")


@dataclass(frozen=True)
class Blocked:
    """Every score update is rejected until ``until``."""

    until: datetime
    level: int

    def __post_init__(self) -> None:
        if self.level < 0:
            raise ValueError("friction level cannot be negative")


Standing = Active | Friction | Blocked


def standing_of(friction_level: int, blocked_until: datetime | None, now: datetime) -> Standing:
    """Derive the standing of a session at ``now``."""
    if friction_level < 0:
        raise ValueError("friction level cannot be negative")
    if blocked_until is not None and now < blocked_until:
        return Blocked(until=blocked_until, level=friction_level)
    if friction_level == 0:
        return Active()
    return Friction(friction_level)


def escalate(
    standing: Standing,
    now: datetime,
    *,
    block_threshold: int,
    block_for: timedelta,
) -> Standing:
    """Add one unit of friction; reaching the threshold starts a block."""
    level = standing.level + 1
    if level >= block_threshold:
        return Blocked(until=now + block_for, level=level)
    return Friction(level)


def repay(standing: Standing) -> Standing:
    """Remove one unit of friction after a solved challenge."""
    if isinstance(standing, Blocked):
        raise ValueError("a blocked session cannot repay friction")
    if standing.level <= 1:
        return Active()
    return Friction(standing.level - 1)
