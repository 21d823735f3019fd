"""SQLAlchemy declarative Base shared by users, refresh tokens and devices."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models (also alembic's target metadata)."""

    pass
