"""Utility modules for the fingerprinting engine."""

from .config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
