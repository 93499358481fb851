# src/spatial_captcha/models/tenant.py
"""SQLAlchemy model for registered API customers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from spatial_captcha.db.session import Base

PLAN_FREE = "free"
PLAN_PAID = "paid"


class Tenant(Base):
    """A customer identified by a browser-facing API key and a backend secret key."""

    __tablename__ = "customers"

    api_key: Mapped[str] = mapped_column(Text, primary_key=True)
    secret_key: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    allowed_origins: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    plan: Mapped[str] = mapped_column(Text, nullable=False, default=PLAN_FREE)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @property
    def is_free(self) -> bool:
        """Return True when the tenant is subject to the free-tier quota."""
        return self.plan == PLAN_FREE

    def allows_origin(self, origin: str | None) -> bool:
        """Return True if ``origin`` is on the tenant's allow-list."""
        if not origin:
            return False
        return origin in (self.allowed_origins or [])
