# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

from school_clicker.api.v1 import dependencies as deps
from school_clicker.db.session import Base
from school_clicker.db.session import get_db as app_get_session
from school_clicker.main import app as fastapi_app
from school_clicker.models import School
from school_clicker.services.captcha import ChallengeVerifier
from school_clicker.services.orchestrator import ScoreUpdateOrchestrator
from school_clicker.services.rate_limiter import (
    FixedWindowLimiter,
    RateLimitPolicies,
    RateLimitPolicy,
)
from school_clicker.services.scores import ScoreMutator
from school_clicker.services.sessions import SessionLifecycleManager, SessionPolicy
from school_clicker.services.token_store import SessionTokenStore

TEST_DB_URL = "sqlite://"
VALID_CAPTCHA = "valid-captcha-token"
TEST_START = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable wall clock for session expiry and block windows."""

    def __init__(self, start: datetime = TEST_START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class CaptchaProvider:
    """In-process stand-in for the siteverify endpoint."""

    def __init__(self) -> None:
        self.requests: list[dict[str, list[str]]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode())
        self.requests.append(form)
        ok = form.get("response") == [VALID_CAPTCHA]
        body: dict[str, object] = {"success": ok}
        if not ok:
            body["error-codes"] = ["invalid-input-response"]
        return httpx.Response(200, json=body)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rate_limiter() -> FixedWindowLimiter:
    return FixedWindowLimiter.in_memory()


@pytest.fixture()
def policies() -> RateLimitPolicies:
    return RateLimitPolicies(
        session_create=RateLimitPolicy("session-create", 5, 60),
        school_create=RateLimitPolicy("school-create", 3, 3600),
        score_ip=RateLimitPolicy("score-ip", 5, 60),
        score_session=RateLimitPolicy("score-session", 20, 60),
    )


@pytest.fixture()
def session_policy() -> SessionPolicy:
    return SessionPolicy(
        ttl=timedelta(hours=6),
        block_threshold=3,
        block_duration=timedelta(minutes=15),
    )


@pytest.fixture()
def valid_captcha() -> str:
    """A challenge token the fake provider accepts."""
    return VALID_CAPTCHA


@pytest.fixture()
def captcha_provider() -> CaptchaProvider:
    return CaptchaProvider()


@pytest.fixture()
def verifier(captcha_provider: CaptchaProvider) -> Iterator[ChallengeVerifier]:
    client = httpx.Client(transport=httpx.MockTransport(captcha_provider))
    verifier = ChallengeVerifier(
        secret="test-secret",
        verify_url="https://captcha.test/siteverify",
        client=client,
    )
    try:
        yield verifier
    finally:
        verifier.close()


@pytest.fixture()
def store(db_session: Session) -> SessionTokenStore:
    return SessionTokenStore(db_session)


@pytest.fixture()
def manager(
    store: SessionTokenStore,
    rate_limiter: FixedWindowLimiter,
    verifier: ChallengeVerifier,
    policies: RateLimitPolicies,
    session_policy: SessionPolicy,
    fake_clock: FakeClock,
) -> SessionLifecycleManager:
    return SessionLifecycleManager(
        store,
        rate_limiter,
        verifier,
        policies=policies,
        session_policy=session_policy,
        clock=fake_clock,
    )


@pytest.fixture()
def orchestrator(
    db_session: Session,
    manager: SessionLifecycleManager,
    rate_limiter: FixedWindowLimiter,
    policies: RateLimitPolicies,
) -> ScoreUpdateOrchestrator:
    return ScoreUpdateOrchestrator(manager, ScoreMutator(db_session), rate_limiter, policies)


@pytest.fixture()
def make_school(db_session: Session, fake_clock: FakeClock) -> Callable[..., School]:
    def _make(school_id: str = "mit", *, name: str = "MIT", score: int = 0) -> School:
        school = School(
            id=school_id,
            name=name,
            region="Massachusetts",
            score=score,
            created_at=fake_clock(),
        )
        db_session.add(school)
        db_session.commit()
        return school

    return _make


@pytest.fixture()
def mit(make_school: Callable[..., School]) -> School:
    """The school most scenarios click for, starting at 100 points."""
    return make_school("mit", name="MIT", score=100)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    rate_limiter: FixedWindowLimiter,
    policies: RateLimitPolicies,
    session_policy: SessionPolicy,
    verifier: ChallengeVerifier,
    fake_clock: FakeClock,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides = {
        app_get_session: _get_session_override,
        deps.get_rate_limiter_dep: lambda: rate_limiter,
        deps.get_rate_limit_policies_dep: lambda: policies,
        deps.get_session_policy_dep: lambda: session_policy,
        deps.get_challenge_verifier_dep: lambda: verifier,
        deps.get_clock_dep: lambda: fake_clock,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
