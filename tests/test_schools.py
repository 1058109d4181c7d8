# tests/test_schools.py
"""Tests for school registration and the leaderboard."""

from __future__ import annotations

import pytest

from school_clicker.core.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    ResourceExhaustedError,
)
from school_clicker.services.schools import SchoolRegistry, generate_school_id


@pytest.fixture()
def registry(db_session, rate_limiter, policies, fake_clock) -> SchoolRegistry:
    return SchoolRegistry(db_session, rate_limiter, policies, clock=fake_clock)


def _add(registry: SchoolRegistry, name: str = "Lincoln High", **overrides):
    fields = {
        "name": name,
        "region": "Nebraska",
        "requester_email": "office@example.org",
        "client_ip": "1.2.3.4",
    }
    fields.update(overrides)
    return registry.add_school(**fields)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("MIT", "mit"),
        ("St. Mary's  Academy", "stmarysacademy"),
        ("Lincoln High School #2", "lincolnhighschool2"),
        ("!!!", ""),
    ],
)
def test_generate_school_id(name: str, expected: str) -> None:
    assert generate_school_id(name) == expected


def test_add_school_starts_at_zero(registry: SchoolRegistry) -> None:
    school = _add(registry, logo_url="  https://example.org/logo.png ")

    assert school.id == "lincolnhigh"
    assert school.score == 0
    assert school.region == "Nebraska"
    assert school.logo_url == "https://example.org/logo.png"
    assert school.requested_by_email == "office@example.org"


def test_duplicate_school(registry: SchoolRegistry) -> None:
    _add(registry)

    with pytest.raises(AlreadyExistsError):
        _add(registry, name="LINCOLN high")


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"region": ""},
        {"requester_email": None},
        {"requester_email": "not-an-email"},
        {"name": "???"},
    ],
)
def test_invalid_fields(registry: SchoolRegistry, overrides) -> None:
    with pytest.raises(InvalidArgumentError):
        _add(registry, **overrides)


def test_school_creation_budget(registry: SchoolRegistry) -> None:
    for index in range(3):
        _add(registry, name=f"School {index}")

    with pytest.raises(ResourceExhaustedError):
        _add(registry, name="School 4")


def test_list_schools_orders_by_score(registry: SchoolRegistry, make_school) -> None:
    make_school("low", name="Low", score=5)
    make_school("high", name="High", score=50)
    make_school("mid", name="Mid", score=20)

    assert [school.id for school in registry.list_schools()] == ["high", "mid", "low"]
    assert [school.id for school in registry.list_schools(limit=1)] == ["high"]
