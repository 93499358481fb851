"""Typed failures raised by the CAPTCHA protocol.

Every class carries the machine-readable ``reason`` returned to callers, a
human-readable ``message`` and the HTTP status code used by the API layer.
"""

from __future__ import annotations

from fastapi import status


class CaptchaError(Exception):
    """Base class for protocol failures reported as structured JSON."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    reason: str = "BadRequest"
    message: str = "Request could not be processed."

    def __init__(
        self,
        reason: str | None = None,
        message: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        if reason is not None:
            self.reason = reason
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class AuthError(CaptchaError):
    """API key or origin rejected by the Auth Gate."""

    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "InvalidApiKey"
    message = "Authentication failed: invalid API key."

    @classmethod
    def missing_api_key(cls) -> AuthError:
        return cls("MissingApiKey", "Authentication failed: API key is missing.")

    @classmethod
    def invalid_api_key(cls) -> AuthError:
        return cls("InvalidApiKey", "Authentication failed: invalid API key.")

    @classmethod
    def origin_not_allowed(cls) -> AuthError:
        return cls("OriginNotAllowed", "Authentication failed: origin is not allowed.")


class QuotaExceededError(CaptchaError):
    """Free-plan tenant has used up its challenge quota."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    reason = "QuotaExceeded"
    message = "Usage quota exceeded: upgrade to a paid plan."


class SessionError(CaptchaError):
    """Challenge session absent, expired or already consumed."""

    reason = "InvalidOrExpiredSession"
    message = "Invalid or expired session."


class TokenError(CaptchaError):
    """Site-verify credential problems."""

    reason = "MissingParameters"
    message = "Both secret_key and pass_token are required."

    @classmethod
    def missing_parameters(cls) -> TokenError:
        return cls()

    @classmethod
    def invalid_secret_key(cls) -> TokenError:
        return cls(
            "InvalidSecretKey",
            "Invalid secret_key.",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ContentUnavailableError(CaptchaError):
    """The content catalog has nothing to serve."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    reason = "NoContentAvailable"
    message = "No challenge content is available."


class InternalStoreError(CaptchaError):
    """Persistent or expiring store failure unrelated to caller input."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "InternalError"
    message = "Internal server error."
