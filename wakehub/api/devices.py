"""Device registry and power actions. Listing and power actions need a login; edits need admin."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wakehub.api.auth import get_current_user, require_admin
from wakehub.core.config import get_settings
from wakehub.core.database import get_db
from wakehub.models import Device
from wakehub.models.device import DEFAULT_BROADCAST_ADDR
from wakehub.schemas.auth import CurrentUser, MessageResponse
from wakehub.schemas.devices import CreateDeviceRequest, DeviceResponse, UpdateDeviceRequest
from wakehub.services.devices import (
    ShutdownAgentError,
    WakeError,
    request_shutdown,
    send_magic_packet,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_device(db: Session, device_id: int) -> Device:
    device = db.get(Device, device_id)
    if device is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    return device


@router.get("", response_model=list[DeviceResponse])
def list_devices(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[DeviceResponse]:
    devices = db.query(Device).order_by(Device.id).all()
    return [DeviceResponse.model_validate(d) for d in devices]


@router.post("", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
def create_device(
    body: CreateDeviceRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> DeviceResponse:
    device = Device(
        name=body.name,
        mac_address=body.mac_address,
        ip_address=body.ip_address,
        broadcast_addr=body.broadcast_addr or DEFAULT_BROADCAST_ADDR,
        icon=body.icon,
        is_online=False,
        created_by=admin.id,
    )
    db.add(device)
    db.commit()
    db.refresh(device)
    return DeviceResponse.model_validate(device)


@router.put("/{device_id}", response_model=DeviceResponse)
def update_device(
    device_id: int,
    body: UpdateDeviceRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> DeviceResponse:
    """Partial update: only fields present in the body are changed."""
    device = _get_device(db, device_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(device, field, value)
    db.commit()
    db.refresh(device)
    return DeviceResponse.model_validate(device)


@router.delete("/{device_id}", response_model=MessageResponse)
def delete_device(
    device_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    device = _get_device(db, device_id)
    db.delete(device)
    db.commit()
    return MessageResponse(message="Device deleted")


@router.post("/{device_id}/wake", response_model=MessageResponse)
def wake_device(
    device_id: int,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Broadcast a Wake-on-LAN magic packet for the device."""
    device = _get_device(db, device_id)
    try:
        send_magic_packet(device.mac_address, device.broadcast_addr, get_settings().WOL_PORT)
    except WakeError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message) from e
    logger.info("Wake requested", extra={"device_id": device.id, "user_id": user.id})
    return MessageResponse(message="Wake signal sent")


@router.post("/{device_id}/shutdown", response_model=MessageResponse)
async def shutdown_device(
    device_id: int,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Ask the device's shutdown agent to power it off."""
    device = _get_device(db, device_id)
    if not device.ip_address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Device has no IP address",
        )
    try:
        await request_shutdown(device.ip_address, get_settings())
    except ShutdownAgentError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message) from e
    logger.info("Shutdown requested", extra={"device_id": device.id, "user_id": user.id})
    return MessageResponse(message="Shutdown signal sent")
