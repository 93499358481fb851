# src/spatial_captcha/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import challenge_router, siteverify_router, system_router

__all__ = [
    "challenge_router",
    "siteverify_router",
    "system_router",
]
