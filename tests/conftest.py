# tests/conftest.py
from __future__ import annotations

import os
import secrets
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FREE_TIER_QUOTA", "5")

from spatial_captcha.core.settings import settings
from spatial_captcha.db.session import Base
from spatial_captcha.db.session import get_db as app_get_session
from spatial_captcha.main import app as fastapi_app
from spatial_captcha.models import PLAN_FREE, PLAN_PAID, ContentModel, Tenant
from spatial_captcha.schemas import ChallengeSession, PassTokenRecord
from spatial_captcha.services.stores import (
    MemoryExpiringStore,
    get_challenge_store,
    get_pass_token_store,
)

TEST_DB_URL = "sqlite://"
TEST_ORIGIN = "https://shop.example.com"
OTHER_ORIGIN = "https://evil.example.net"


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


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
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def challenge_store(clock: FakeClock) -> MemoryExpiringStore[ChallengeSession]:
    return MemoryExpiringStore(settings.session_ttl_seconds, name="challenge", clock=clock)


@pytest.fixture()
def pass_token_store(clock: FakeClock) -> MemoryExpiringStore[PassTokenRecord]:
    return MemoryExpiringStore(settings.pass_token_ttl_seconds, name="pass-token", clock=clock)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    challenge_store: MemoryExpiringStore[ChallengeSession],
    pass_token_store: MemoryExpiringStore[PassTokenRecord],
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_challenge_store] = lambda: challenge_store
    app.dependency_overrides[get_pass_token_store] = lambda: pass_token_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_challenge_store, None)
        app.dependency_overrides.pop(get_pass_token_store, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_tenant(
    db: Session,
    *,
    plan: str = PLAN_FREE,
    usage_count: int = 0,
    origins: list[str] | None = None,
) -> Tenant:
    """Persist a tenant with unique keys and return it."""
    n = secrets.token_hex(6)
    tenant = Tenant(
        api_key=f"pk_test_{n}",
        secret_key=f"sk_live_{n}",
        allowed_origins=origins if origins is not None else [TEST_ORIGIN],
        plan=plan,
        usage_count=usage_count,
    )
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture()
def content(db_session: Session) -> ContentModel:
    """Persist a single catalog entry."""
    model = ContentModel(model_url="https://cdn.example.com/models/teapot.glb", label="teapot")
    db_session.add(model)
    db_session.commit()
    return model


@pytest.fixture()
def tenant(db_session: Session) -> Tenant:
    """A free-plan tenant allowed on ``TEST_ORIGIN``."""
    return make_tenant(db_session)


@pytest.fixture()
def paid_tenant(db_session: Session) -> Tenant:
    return make_tenant(db_session, plan=PLAN_PAID)


@pytest.fixture()
def auth_headers(tenant: Tenant) -> dict[str, str]:
    return {"X-API-Key": tenant.api_key, "Origin": TEST_ORIGIN}
