"""Logging setup and redaction helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    root = logging.getLogger()
    if not any(getattr(h, "_spatial_captcha", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._spatial_captcha = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level.upper())


def mask_key(key: str | None) -> str:
    """Return a key reduced to its last four characters."""
    if not key:
        return "<none>"
    return f"…{key[-4:]}"


def short_id(identifier: str | None) -> str:
    """Return the first eight characters of an identifier for log lines."""
    if not identifier:
        return "<none>"
    return f"{identifier[:8]}…"
