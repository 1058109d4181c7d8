# tests/test_orchestrator.py
"""Tests for the update_score pipeline."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from school_clicker.core.errors import (
    CAPTCHA_REQUIRED,
    RATE_LIMITED,
    SESSION_EXPIRED,
    TEMP_BLOCK,
    CaptchaInvalidError,
    CaptchaRequiredError,
    FrictionEscalatedError,
    InvalidArgumentError,
    NotFoundError,
    ResourceExhaustedError,
    TemporarilyBlockedError,
    UnauthenticatedError,
)
from school_clicker.models import School
from school_clicker.services.orchestrator import ScoreUpdateOrchestrator
from school_clicker.services.token_store import hash_session_token


def _update(orchestrator: ScoreUpdateOrchestrator, token: str, **overrides):
    fields = {
        "school_id": "mit",
        "delta": 1,
        "session_token": token,
        "client_ip": "1.2.3.4",
    }
    fields.update(overrides)
    return orchestrator.update_score(**fields)


def _exhaust_from_many_ips(orchestrator, token: str, calls: int) -> None:
    for index in range(calls):
        _update(orchestrator, token, client_ip=f"10.0.{index // 5}.{index % 5}")


@pytest.fixture()
def token(manager) -> str:
    return manager.create("1.2.3.4", "pytest").token


def test_accepts_delta_and_records_activity(orchestrator, token, mit, db_session, store) -> None:
    result = _update(orchestrator, token, delta=500, user_agent="Mozilla/5.0")

    assert result.success is True
    assert result.activity_recorded is True
    assert db_session.get(School, "mit").score == 600
    record = store.get(hash_session_token(token))
    assert record.request_count == 1
    assert record.user_agent == "Mozilla/5.0"


def test_school_id_is_trimmed(orchestrator, token, mit, db_session) -> None:
    _update(orchestrator, token, school_id="  mit ")

    assert db_session.get(School, "mit").score == 101


@pytest.mark.parametrize(
    "overrides",
    [
        {"delta": -1500},
        {"delta": 0},
        {"delta": 2.5},
        {"school_id": ""},
        {"school_id": None},
        {"school_id": 42},
    ],
)
def test_argument_errors_touch_nothing(overrides) -> None:
    sessions = MagicMock()
    mutator = MagicMock()
    limiter = MagicMock()
    orchestrator = ScoreUpdateOrchestrator(sessions, mutator, limiter, MagicMock())

    with pytest.raises(InvalidArgumentError):
        _update(orchestrator, "a" * 64, **overrides)

    assert sessions.method_calls == []
    assert mutator.method_calls == []
    limiter.consume.assert_not_called()


@pytest.mark.parametrize("bad_token", [None, "", "a" * 63, "a" * 129, 12345])
def test_malformed_token_consumes_no_budget(bad_token) -> None:
    sessions = MagicMock()
    limiter = MagicMock()
    orchestrator = ScoreUpdateOrchestrator(sessions, MagicMock(), limiter, MagicMock())

    with pytest.raises(UnauthenticatedError):
        _update(orchestrator, bad_token)

    limiter.consume.assert_not_called()
    sessions.validate.assert_not_called()


def test_unknown_session(orchestrator, mit) -> None:
    with pytest.raises(UnauthenticatedError):
        _update(orchestrator, "f" * 64)


def test_expired_session(orchestrator, token, mit, fake_clock) -> None:
    fake_clock.advance(hours=7)

    with pytest.raises(UnauthenticatedError) as exc_info:
        _update(orchestrator, token)

    assert exc_info.value.code == SESSION_EXPIRED


def test_unknown_school(orchestrator, token) -> None:
    with pytest.raises(NotFoundError):
        _update(orchestrator, token, school_id="nowhere")


def test_per_ip_limit(orchestrator, token, mit, db_session) -> None:
    for _ in range(5):
        _update(orchestrator, token)

    with pytest.raises(ResourceExhaustedError) as exc_info:
        _update(orchestrator, token)

    assert exc_info.value.code == RATE_LIMITED
    assert db_session.get(School, "mit").score == 105


def test_session_limit_escalates_then_challenge_recovers(
    orchestrator,
    token,
    mit,
    store,
    db_session,
    valid_captcha,
) -> None:
    _exhaust_from_many_ips(orchestrator, token, 20)

    with pytest.raises(FrictionEscalatedError) as exc_info:
        _update(orchestrator, token, client_ip="172.16.0.1")

    assert exc_info.value.code == CAPTCHA_REQUIRED
    assert exc_info.value.http_status == 429
    assert store.get(hash_session_token(token)).friction_level == 1

    with pytest.raises(CaptchaRequiredError):
        _update(orchestrator, token, client_ip="172.16.0.2")
    with pytest.raises(CaptchaInvalidError):
        _update(orchestrator, token, client_ip="172.16.0.3", captcha_token="forged")

    result = _update(orchestrator, token, client_ip="172.16.0.4", captcha_token=valid_captcha)

    assert result.success is True
    assert store.get(hash_session_token(token)).friction_level == 0
    assert db_session.get(School, "mit").score == 121


def test_blocked_session_rejects_even_valid_captcha(
    orchestrator,
    token,
    mit,
    store,
    db_session,
    fake_clock,
    captcha_provider,
    valid_captcha,
) -> None:
    record = store.get(hash_session_token(token))
    record.friction_level = 1
    record.blocked_until = fake_clock() + timedelta(minutes=15)
    store.put(record)

    with pytest.raises(TemporarilyBlockedError) as exc_info:
        _update(orchestrator, token, captcha_token=valid_captcha)

    assert exc_info.value.code == TEMP_BLOCK
    assert exc_info.value.blocked_until == fake_clock() + timedelta(minutes=15)
    assert captcha_provider.requests == []
    assert db_session.get(School, "mit").score == 100


def test_burst_admitted_before_friction_escalates_into_block(
    orchestrator,
    manager,
    token,
    mit,
    rate_limiter,
    policies,
    fake_clock,
    mocker,
) -> None:
    # Requests that already passed the challenge step while the session was
    # still active: every further trip adds friction without a repayment.
    mocker.patch.object(manager, "apply_challenge", side_effect=lambda record, *_: record)
    session_id = hash_session_token(token)
    for _ in range(policies.score_session.points):
        rate_limiter.consume(session_id, policies.score_session)

    with pytest.raises(FrictionEscalatedError):
        _update(orchestrator, token, client_ip="10.1.0.1")
    with pytest.raises(FrictionEscalatedError):
        _update(orchestrator, token, client_ip="10.1.0.2")
    with pytest.raises(TemporarilyBlockedError) as exc_info:
        _update(orchestrator, token, client_ip="10.1.0.3")

    assert exc_info.value.blocked_until == fake_clock() + timedelta(minutes=15)


def test_failed_activity_write_still_reports_success(
    orchestrator,
    manager,
    token,
    mit,
    db_session,
    mocker,
) -> None:
    mocker.patch.object(
        manager,
        "register_activity",
        side_effect=OperationalError("UPDATE", {}, Exception("database is locked")),
    )

    result = _update(orchestrator, token, delta=10)

    assert result.success is True
    assert result.activity_recorded is False
    assert db_session.get(School, "mit").score == 110
