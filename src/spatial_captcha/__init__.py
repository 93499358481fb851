"""Spatial CAPTCHA: one-shot 3D orientation challenges with server-side siteverify."""

__version__ = "2.0.0"
