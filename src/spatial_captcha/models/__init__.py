# src/spatial_captcha/models/__init__.py
"""SQLAlchemy models for the Spatial CAPTCHA service."""

from .content import ContentModel
from .tenant import PLAN_FREE, PLAN_PAID, Tenant

__all__ = [
    "ContentModel",
    "PLAN_FREE", "PLAN_PAID", "Tenant",
]
