"""SQLAlchemy ORM models."""

from wakehub.models.base import Base
from wakehub.models.device import Device
from wakehub.models.refresh_token import RefreshToken
from wakehub.models.user import User

__all__ = ["Base", "Device", "RefreshToken", "User"]
