# src/spatial_captcha/api/v1/endpoints/siteverify.py
"""Server-to-server token redemption, authenticated by secret key."""

from __future__ import annotations

from fastapi import APIRouter

from spatial_captcha.api.v1.dependencies import SiteVerifyServiceDep
from spatial_captcha.schemas import SiteVerifyRequest, SiteVerifyResponse

router = APIRouter(tags=["siteverify"])


@router.post(
    "/siteverify",
    response_model=SiteVerifyResponse,
    response_model_exclude_none=True,
)
def siteverify(
    service: SiteVerifyServiceDep,
    payload: SiteVerifyRequest | None = None,
) -> SiteVerifyResponse:
    """Redeem a pass token once; an unknown or spent token is a normal ``success: false``."""
    if payload is None:
        payload = SiteVerifyRequest()
    return service.siteverify(payload.secret_key, payload.pass_token)
