"""Schemas for challenge issuance and browser-side verification."""
from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from spatial_captcha.core.orientation import Euler


class Orientation(BaseModel):
    """Euler angles in radians, XYZ order."""

    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    z: float

    def as_euler(self) -> Euler:
        return Euler(self.x, self.y, self.z)

    @classmethod
    def from_euler(cls, angles: Euler) -> Orientation:
        return cls(x=angles.x, y=angles.y, z=angles.z)


class ChallengeSession(BaseModel):
    """Challenge Store entry: the target a session must be solved against."""

    session_id: str
    target_orientation: Orientation
    created_at: datetime


class PassTokenRecord(BaseModel):
    """Pass-Token Store entry minted by a successful verification."""

    session_id: str
    verified_at: datetime
    error_angle: float


class ChallengeCreateResponse(BaseModel):
    """API response payload for a freshly issued challenge."""

    session_id: str
    content_ref: str
    target_orientation: Orientation


class VerifyRequest(BaseModel):
    """Browser submission of a solved orientation."""

    session_id: str | None = None
    submitted_orientation: Orientation = Field(
        validation_alias=AliasChoices("submitted_orientation", "user_rotation"),
    )


class VerifyResponse(BaseModel):
    """Outcome of a verification attempt."""

    verified: bool
    error_angle: float
    tolerance: float
    pass_token: str | None = None
