"""Repositories over the persistent tenant and catalog tables."""

from .tenants import TenantDirectory

__all__ = ["TenantDirectory"]
