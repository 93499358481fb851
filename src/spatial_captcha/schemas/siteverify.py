"""Schemas for server-to-server token confirmation."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SiteVerifyRequest(BaseModel):
    """Tenant backend request; both fields are checked by the service, not the parser."""

    secret_key: str | None = None
    pass_token: str | None = None


class SiteVerifyResponse(BaseModel):
    """Result returned to the tenant backend."""

    success: bool
    challenge_ts: datetime | None = None
    error_angle: float | None = None
    reason: str | None = None
    message: str | None = None
