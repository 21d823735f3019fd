"""ORM model for persisted refresh tokens (single-use, expiring)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from wakehub.models.base import Base


class RefreshToken(Base):
    """
    One row per outstanding refresh token.

    token_hash is the SHA-256 hex digest of the opaque token handed to the
    client; the plaintext token is never stored.
    """

    __tablename__ = "refresh_tokens"

    token_hash = Column(String(64), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="refresh_tokens")
