"""Core app configuration, database and security primitives."""

from wakehub.core.config import get_settings, settings
from wakehub.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
