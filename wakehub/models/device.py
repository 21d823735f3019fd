"""ORM model for registered Wake-on-LAN devices."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from wakehub.models.base import Base

DEFAULT_BROADCAST_ADDR = "255.255.255.255"


class Device(Base):
    """Machine that can be woken by magic packet and shut down via its agent."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    mac_address = Column(String(17), nullable=False, index=True)
    ip_address = Column(String(255), nullable=True)
    broadcast_addr = Column(String(255), nullable=True, default=DEFAULT_BROADCAST_ADDR)
    icon = Column(String(64), nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)
    last_seen_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
