"""Shared API dependencies: the Auth Gate and service wiring."""

import logging
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from spatial_captcha.core.errors import AuthError, QuotaExceededError
from spatial_captcha.core.log import mask_key
from spatial_captcha.core.settings import settings
from spatial_captcha.db.session import get_db
from spatial_captcha.models import Tenant
from spatial_captcha.repositories.tenants import TenantDirectory
from spatial_captcha.schemas import ChallengeSession, PassTokenRecord
from spatial_captcha.services.challenge import ChallengeService
from spatial_captcha.services.siteverify import SiteVerifyService
from spatial_captcha.services.stores import (
    ExpiringStore,
    get_challenge_store,
    get_pass_token_store,
)

logger = logging.getLogger(__name__)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
ChallengeStoreDep = Annotated[ExpiringStore[ChallengeSession], Depends(get_challenge_store)]
PassTokenStoreDep = Annotated[ExpiringStore[PassTokenRecord], Depends(get_pass_token_store)]


def get_tenant_directory(db: SessionDep) -> TenantDirectory:
    """Return a Tenant Directory bound to the request's database session."""
    return TenantDirectory(db)


DirectoryDep = Annotated[TenantDirectory, Depends(get_tenant_directory)]


def authorize_tenant(
    directory: TenantDirectory,
    api_key: str | None,
    origin: str | None,
    *,
    quota: int,
) -> Tenant:
    """Run the Auth Gate checks in order, stopping at the first failure.

    Quota is only checked here; it is consumed when a challenge is issued.

    Raises:
        AuthError: If the key is missing or unknown, or the origin is not allowed.
        QuotaExceededError: If a free-plan tenant has reached ``quota``.
    """
    if not api_key:
        logger.warning("Auth rejected: missing API key")
        raise AuthError.missing_api_key()

    tenant = directory.lookup_by_api_key(api_key)
    if tenant is None:
        logger.warning("Auth rejected: unknown API key %s", mask_key(api_key))
        raise AuthError.invalid_api_key()

    if not tenant.allows_origin(origin):
        logger.warning(
            "Auth rejected: origin %r not allowed for %s (allowed: %s)",
            origin,
            mask_key(api_key),
            tenant.allowed_origins,
        )
        raise AuthError.origin_not_allowed()

    if tenant.is_free and tenant.usage_count >= quota:
        logger.warning(
            "Quota exceeded: free tenant %s reached %d challenges", mask_key(api_key), quota
        )
        raise QuotaExceededError()

    return tenant


def require_tenant(
    directory: DirectoryDep,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    origin: Annotated[str | None, Header()] = None,
) -> Tenant:
    """Resolve the calling tenant from the ``X-API-Key`` and ``Origin`` headers."""
    return authorize_tenant(directory, x_api_key, origin, quota=settings.free_tier_quota)


# Type alias for the authenticated tenant dependency
CurrentTenantDep = Annotated[Tenant, Depends(require_tenant)]


def get_challenge_service(
    directory: DirectoryDep,
    challenge_store: ChallengeStoreDep,
    pass_token_store: PassTokenStoreDep,
) -> ChallengeService:
    return ChallengeService(directory, challenge_store, pass_token_store)


def get_siteverify_service(
    directory: DirectoryDep,
    pass_token_store: PassTokenStoreDep,
) -> SiteVerifyService:
    return SiteVerifyService(directory, pass_token_store)


ChallengeServiceDep = Annotated[ChallengeService, Depends(get_challenge_service)]
SiteVerifyServiceDep = Annotated[SiteVerifyService, Depends(get_siteverify_service)]
