# src/spatial_captcha/schemas/__init__.py
"""
Pydantic schemas for API request/response models and expiring store records.
"""

from .challenge import (
    ChallengeCreateResponse,
    ChallengeSession,
    Orientation,
    PassTokenRecord,
    VerifyRequest,
    VerifyResponse,
)
from .siteverify import SiteVerifyRequest, SiteVerifyResponse

__all__ = [
    "ChallengeCreateResponse", "ChallengeSession", "Orientation",
    "PassTokenRecord", "VerifyRequest", "VerifyResponse",
    "SiteVerifyRequest", "SiteVerifyResponse",
]
