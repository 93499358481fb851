"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from spatial_captcha.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "quota": {
            "free_tier": settings.free_tier_quota,
        },
        "challenge": {
            "session_ttl_seconds": settings.session_ttl_seconds,
            "pass_token_ttl_seconds": settings.pass_token_ttl_seconds,
            "tolerance_degrees": settings.tolerance_degrees,
        },
        "store": {
            "backend": settings.store_backend,
        },
    }
