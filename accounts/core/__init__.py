"""Core app configuration and database."""

from accounts.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
