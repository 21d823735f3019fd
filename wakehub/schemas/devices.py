"""Request/response schemas for the device registry."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAC_ADDRESS_RE = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")


def normalize_mac(value: str) -> str:
    """Validate a MAC address and return it as AA:BB:CC:DD:EE:FF."""
    v = value.strip()
    if not MAC_ADDRESS_RE.match(v):
        raise ValueError("mac_address must look like AA:BB:CC:DD:EE:FF")
    return v.replace("-", ":").upper()


class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    mac_address: str
    ip_address: str | None = None
    broadcast_addr: str | None = None
    icon: str | None = None
    is_online: bool
    last_seen_at: datetime | None = None


class CreateDeviceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    mac_address: str
    ip_address: str | None = Field(default=None, max_length=255)
    broadcast_addr: str | None = Field(default=None, max_length=255)
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("mac_address")
    @classmethod
    def validate_mac_address(cls, v: str) -> str:
        return normalize_mac(v)


class UpdateDeviceRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    mac_address: str | None = None
    ip_address: str | None = Field(default=None, max_length=255)
    broadcast_addr: str | None = Field(default=None, max_length=255)
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("mac_address")
    @classmethod
    def validate_mac_address(cls, v: str | None) -> str | None:
        return normalize_mac(v) if v is not None else None
