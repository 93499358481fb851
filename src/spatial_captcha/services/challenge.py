"""Challenge issuance and browser-side verification."""

from __future__ import annotations

import logging
import random
import secrets
import uuid
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from spatial_captcha.core import orientation
from spatial_captcha.core.errors import (
    ContentUnavailableError,
    InternalStoreError,
    SessionError,
)
from spatial_captcha.core.log import mask_key, short_id
from spatial_captcha.core.settings import settings
from spatial_captcha.models import Tenant
from spatial_captcha.repositories.tenants import TenantDirectory
from spatial_captcha.schemas import (
    ChallengeCreateResponse,
    ChallengeSession,
    Orientation,
    PassTokenRecord,
    VerifyResponse,
)
from spatial_captcha.services.stores import ExpiringStore

logger = logging.getLogger(__name__)

_SYSTEM_RANDOM = random.SystemRandom()


def new_session_id() -> str:
    """Return an unpredictable challenge session identifier."""
    return str(uuid.uuid4())


def new_pass_token() -> str:
    """Return an unpredictable one-time pass token."""
    return secrets.token_urlsafe(32)


class ChallengeService:
    """Orchestrates the create/verify half of the protocol."""

    def __init__(
        self,
        directory: TenantDirectory,
        challenge_store: ExpiringStore[ChallengeSession],
        pass_token_store: ExpiringStore[PassTokenRecord],
        *,
        tolerance_degrees: float | None = None,
        free_tier_quota: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.directory = directory
        self.challenge_store = challenge_store
        self.pass_token_store = pass_token_store
        self.tolerance_degrees = (
            settings.tolerance_degrees if tolerance_degrees is None else tolerance_degrees
        )
        self.free_tier_quota = (
            settings.free_tier_quota if free_tier_quota is None else free_tier_quota
        )
        self._rng = rng or _SYSTEM_RANDOM

    def create(self, tenant: Tenant) -> ChallengeCreateResponse:
        """Issue a new challenge for ``tenant`` and count it against its usage.

        The session is stored before the usage increment is committed. If the
        commit fails the caller gets an error and never sees the session id, so
        the orphaned session simply expires.

        Raises:
            ContentUnavailableError: If the content catalog is empty.
            QuotaExceededError: If a concurrent request consumed the last free slot.
            InternalStoreError: If the database rejects the usage increment.
        """
        db = self.directory.session
        api_key = tenant.api_key
        try:
            content = self.directory.pick_content()
            if content is None:
                raise ContentUnavailableError()
            content_ref = content.model_url

            session_id = new_session_id()
            target = Orientation.from_euler(orientation.random_target(self._rng))
            self.challenge_store.set(
                session_id,
                ChallengeSession(
                    session_id=session_id,
                    target_orientation=target,
                    created_at=datetime.now(UTC),
                ),
            )

            self.directory.increment_usage(api_key, quota=self.free_tier_quota)
            db.commit()
        except SQLAlchemyError as err:
            db.rollback()
            logger.exception("Usage increment failed for tenant %s", mask_key(api_key))
            raise InternalStoreError() from err
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Challenge issued: session %s, tenant %s", short_id(session_id), mask_key(api_key)
        )
        return ChallengeCreateResponse(
            session_id=session_id,
            content_ref=content_ref,
            target_orientation=target,
        )

    def verify(self, session_id: str | None, submitted: Orientation) -> VerifyResponse:
        """Judge a submitted orientation against the session's target.

        The session is removed from the store as part of the lookup, so every
        session gets exactly one verification attempt whatever its outcome.

        Raises:
            SessionError: If the session id is absent, unknown, expired or already used.
        """
        challenge = self.challenge_store.pop(session_id) if session_id else None
        if challenge is None:
            raise SessionError()

        error_angle = orientation.angular_distance_degrees(
            submitted.as_euler(), challenge.target_orientation.as_euler()
        )
        tolerance = self.tolerance_degrees

        if error_angle >= tolerance:
            logger.info(
                "Verification failed: session %s, error %.1f°", short_id(session_id), error_angle
            )
            return VerifyResponse(verified=False, error_angle=error_angle, tolerance=tolerance)

        pass_token = new_pass_token()
        self.pass_token_store.set(
            pass_token,
            PassTokenRecord(
                session_id=challenge.session_id,
                verified_at=datetime.now(UTC),
                error_angle=error_angle,
            ),
        )
        logger.info(
            "Verification succeeded: session %s, error %.1f°, token %s",
            short_id(session_id),
            error_angle,
            short_id(pass_token),
        )
        return VerifyResponse(
            verified=True,
            error_angle=error_angle,
            tolerance=tolerance,
            pass_token=pass_token,
        )
