"""Data access helpers for tenants and the content catalog."""
from __future__ import annotations

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from spatial_captcha.core.errors import QuotaExceededError
from spatial_captcha.models import PLAN_FREE, ContentModel, Tenant

__all__ = ["TenantDirectory"]


class TenantDirectory:
    """Read-through accessor over the tenant and content tables.

    The directory never commits on its own; callers own the transaction so that
    the usage increment is committed together with the decision to issue a
    challenge.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the directory with a SQLAlchemy session."""
        self.session = session

    def lookup_by_api_key(self, api_key: str) -> Tenant | None:
        """Return the tenant owning a browser-facing API key."""
        return self.session.get(Tenant, api_key)

    def lookup_by_secret_key(self, secret_key: str) -> Tenant | None:
        """Return the tenant owning a backend-facing secret key."""
        result = self.session.execute(select(Tenant).where(Tenant.secret_key == secret_key))
        return result.scalars().first()

    def pick_content(self) -> ContentModel | None:
        """Return a uniformly random catalog entry, or None when the catalog is empty."""
        result = self.session.execute(
            select(ContentModel).order_by(func.random()).limit(1)
        )
        return result.scalars().first()

    def increment_usage(self, api_key: str, *, quota: int | None = None) -> None:
        """Atomically add one issued challenge to the tenant's usage counter.

        The increment runs inside the database as a single UPDATE. When
        ``quota`` is given, free-plan tenants are only incremented while still
        below it, so concurrent requests cannot overshoot the quota.

        Raises:
            QuotaExceededError: If no row qualified for the increment.
        """
        stmt = (
            update(Tenant)
            .where(Tenant.api_key == api_key)
            .values(usage_count=Tenant.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if quota is not None:
            stmt = stmt.where(or_(Tenant.plan != PLAN_FREE, Tenant.usage_count < quota))
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            raise QuotaExceededError()

    def reset_usage(self, api_key: str | None = None) -> int:
        """Start a new accounting period for one tenant, or for all when ``api_key`` is None.

        Returns:
            Number of tenants reset.
        """
        stmt = update(Tenant).values(usage_count=0).execution_options(
            synchronize_session=False
        )
        if api_key is not None:
            stmt = stmt.where(Tenant.api_key == api_key)
        return self.session.execute(stmt).rowcount

    def register_tenant(
        self,
        *,
        api_key: str,
        secret_key: str,
        allowed_origins: list[str],
        plan: str = PLAN_FREE,
    ) -> Tenant:
        """Insert a new tenant and return the pending ORM instance."""
        tenant = Tenant(
            api_key=api_key,
            secret_key=secret_key,
            allowed_origins=list(allowed_origins),
            plan=plan,
            usage_count=0,
        )
        self.session.add(tenant)
        self.session.flush()
        return tenant

    def add_content(self, model_url: str, label: str | None = None) -> ContentModel:
        """Insert a catalog entry and return it."""
        content = ContentModel(model_url=model_url, label=label)
        self.session.add(content)
        self.session.flush()
        return content

    def list_tenants(self) -> list[Tenant]:
        """Return all tenants ordered by creation time."""
        result = self.session.execute(select(Tenant).order_by(Tenant.created_at))
        return list(result.scalars())
