# src/spatial_captcha/api/v1/endpoints/challenge.py
"""Browser-facing challenge endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from spatial_captcha.api.v1.dependencies import (
    ChallengeServiceDep,
    CurrentTenantDep,
    require_tenant,
)
from spatial_captcha.schemas import ChallengeCreateResponse, VerifyRequest, VerifyResponse

router = APIRouter(tags=["challenge"])


@router.post(
    "/create",
    response_model=ChallengeCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_challenge(
    tenant: CurrentTenantDep,
    service: ChallengeServiceDep,
) -> ChallengeCreateResponse:
    """Issue a new orientation challenge and count it against the tenant's usage."""
    return service.create(tenant)


@router.post(
    "/verify",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_tenant)],
)
def verify_challenge(
    payload: VerifyRequest,
    service: ChallengeServiceDep,
) -> VerifyResponse:
    """Judge a submitted orientation; each session accepts exactly one attempt."""
    return service.verify(payload.session_id, payload.submitted_orientation)
