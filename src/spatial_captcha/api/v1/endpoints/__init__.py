# src/spatial_captcha/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .challenge import router as challenge_router
from .siteverify import router as siteverify_router
from .system import router as system_router

__all__ = [
    "challenge_router",
    "siteverify_router",
    "system_router",
]
