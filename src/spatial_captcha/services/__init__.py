"""Service layer for the Spatial CAPTCHA protocol."""

from .challenge import ChallengeService
from .siteverify import SiteVerifyService
from .stores import (
    ExpiringStore,
    MemoryExpiringStore,
    RedisExpiringStore,
    StoreSweeper,
    get_challenge_store,
    get_pass_token_store,
)

__all__ = [
    "ChallengeService",
    "SiteVerifyService",
    "ExpiringStore",
    "MemoryExpiringStore",
    "RedisExpiringStore",
    "StoreSweeper",
    "get_challenge_store",
    "get_pass_token_store",
]
