"""Server-to-server confirmation of solved challenges."""

from __future__ import annotations

import logging

from spatial_captcha.core.errors import TokenError
from spatial_captcha.core.log import short_id
from spatial_captcha.repositories.tenants import TenantDirectory
from spatial_captcha.schemas import PassTokenRecord, SiteVerifyResponse
from spatial_captcha.services.stores import ExpiringStore

logger = logging.getLogger(__name__)

EXPIRED_OR_UNKNOWN_TOKEN = "ExpiredOrUnknownToken"


class SiteVerifyService:
    """Redeems pass tokens on behalf of a tenant's backend.

    Authentication uses the tenant's secret key only. A token is not bound to
    the tenant that issued its challenge; any valid secret key can redeem it.
    """

    def __init__(
        self,
        directory: TenantDirectory,
        pass_token_store: ExpiringStore[PassTokenRecord],
    ) -> None:
        self.directory = directory
        self.pass_token_store = pass_token_store

    def siteverify(self, secret_key: str | None, pass_token: str | None) -> SiteVerifyResponse:
        """Consume ``pass_token`` and report the verification it stands for.

        Raises:
            TokenError: If a parameter is missing or the secret key is unknown.
        """
        if not secret_key or not pass_token:
            raise TokenError.missing_parameters()

        if self.directory.lookup_by_secret_key(secret_key) is None:
            logger.warning("siteverify rejected: unknown secret_key")
            raise TokenError.invalid_secret_key()

        record = self.pass_token_store.pop(pass_token)
        if record is None:
            logger.warning("siteverify: expired or unknown pass_token %s", short_id(pass_token))
            return SiteVerifyResponse(
                success=False,
                reason=EXPIRED_OR_UNKNOWN_TOKEN,
                message="Token has expired or was already used.",
            )

        logger.info("siteverify succeeded for token %s", short_id(pass_token))
        return SiteVerifyResponse(
            success=True,
            challenge_ts=record.verified_at,
            error_angle=record.error_angle,
        )
