"""Tests for the Tenant Directory repository."""

from __future__ import annotations

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from spatial_captcha.core.errors import QuotaExceededError
from spatial_captcha.db.session import Base
from spatial_captcha.models import PLAN_FREE, PLAN_PAID
from spatial_captcha.repositories.tenants import TenantDirectory
from tests.conftest import make_tenant


@pytest.fixture
def directory(db_session: Session) -> TenantDirectory:
    return TenantDirectory(db_session)


def test_lookup_by_api_key(directory, tenant):
    found = directory.lookup_by_api_key(tenant.api_key)
    assert found is not None
    assert found.secret_key == tenant.secret_key


def test_lookup_by_api_key_miss(directory):
    assert directory.lookup_by_api_key("pk_unknown") is None


def test_lookup_by_secret_key(directory, tenant):
    found = directory.lookup_by_secret_key(tenant.secret_key)
    assert found is not None
    assert found.api_key == tenant.api_key


def test_key_namespaces_are_not_cross_validated(directory, tenant):
    assert directory.lookup_by_api_key(tenant.secret_key) is None
    assert directory.lookup_by_secret_key(tenant.api_key) is None


def test_pick_content_empty_catalog(directory):
    assert directory.pick_content() is None


def test_pick_content_returns_catalog_entry(directory, content):
    picked = directory.pick_content()
    assert picked is not None
    assert picked.model_url == content.model_url


def test_increment_usage_is_applied_in_database(directory, db_session, tenant):
    directory.increment_usage(tenant.api_key)
    directory.increment_usage(tenant.api_key)
    db_session.commit()
    db_session.refresh(tenant)
    assert tenant.usage_count == 2


def test_increment_usage_stops_at_free_quota(directory, db_session):
    tenant = make_tenant(db_session, usage_count=2)
    directory.increment_usage(tenant.api_key, quota=3)
    with pytest.raises(QuotaExceededError):
        directory.increment_usage(tenant.api_key, quota=3)
    db_session.commit()
    db_session.refresh(tenant)
    assert tenant.usage_count == 3


def test_increment_usage_ignores_quota_for_paid_plan(directory, db_session):
    tenant = make_tenant(db_session, plan=PLAN_PAID, usage_count=10)
    directory.increment_usage(tenant.api_key, quota=3)
    db_session.commit()
    db_session.refresh(tenant)
    assert tenant.usage_count == 11


def test_reset_usage_single_tenant(directory, db_session):
    first = make_tenant(db_session, usage_count=4)
    second = make_tenant(db_session, usage_count=7)
    assert directory.reset_usage(first.api_key) == 1
    db_session.commit()
    db_session.refresh(first)
    db_session.refresh(second)
    assert first.usage_count == 0
    assert second.usage_count == 7


def test_register_tenant_and_list(directory, db_session):
    directory.register_tenant(
        api_key="pk_new", secret_key="sk_new", allowed_origins=["https://a.example"]
    )
    db_session.commit()
    assert [t.api_key for t in directory.list_tenants()] == ["pk_new"]


@pytest.fixture
def file_sessions(tmp_path):
    """Independent sessions on one on-disk database, one per thread."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'usage.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    finally:
        engine.dispose()


def _hammer(factory, api_key: str, *, threads: int, per_thread: int, quota: int | None):
    outcomes: list[bool] = []
    lock = threading.Lock()
    barrier = threading.Barrier(threads)

    def worker() -> None:
        barrier.wait()
        for _ in range(per_thread):
            with factory() as db:
                try:
                    TenantDirectory(db).increment_usage(api_key, quota=quota)
                    db.commit()
                    ok = True
                except QuotaExceededError:
                    db.rollback()
                    ok = False
            with lock:
                outcomes.append(ok)

    workers = [threading.Thread(target=worker) for _ in range(threads)]
    for t in workers:
        t.start()
    for t in workers:
        t.join()
    return outcomes


def _usage(factory, api_key: str) -> int:
    with factory() as db:
        return TenantDirectory(db).lookup_by_api_key(api_key).usage_count


def test_concurrent_increments_are_not_lost(file_sessions):
    with file_sessions() as db:
        tenant = make_tenant(db, plan=PLAN_PAID)
    outcomes = _hammer(file_sessions, tenant.api_key, threads=8, per_thread=5, quota=3)
    assert all(outcomes)
    assert _usage(file_sessions, tenant.api_key) == 40


def test_concurrent_increments_stop_exactly_at_quota(file_sessions):
    with file_sessions() as db:
        tenant = make_tenant(db, plan=PLAN_FREE, usage_count=0)
    outcomes = _hammer(file_sessions, tenant.api_key, threads=8, per_thread=4, quota=10)
    assert outcomes.count(True) == 10
    assert _usage(file_sessions, tenant.api_key) == 10
