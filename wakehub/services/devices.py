"""Device power control: Wake-on-LAN magic packets and the shutdown agent call."""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING

import httpx

from wakehub.models.device import DEFAULT_BROADCAST_ADDR

if TYPE_CHECKING:
    from wakehub.core.config import Settings

logger = logging.getLogger(__name__)


class DeviceError(Exception):
    """Base error for device power actions."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class WakeError(DeviceError):
    """Magic packet could not be built or sent."""


class ShutdownAgentError(DeviceError):
    """Shutdown agent unreachable or returned an error status."""


def build_magic_packet(mac_address: str) -> bytes:
    """Return the 102-byte magic packet: 6 x 0xFF followed by the MAC 16 times."""
    parts = mac_address.replace("-", ":").split(":")
    try:
        mac = bytes(int(p, 16) for p in parts)
    except ValueError as e:
        raise WakeError("Invalid MAC address format") from e
    if len(parts) != 6 or any(len(p) != 2 for p in parts):
        raise WakeError("Invalid MAC address format")
    return b"\xff" * 6 + mac * 16


def send_magic_packet(mac_address: str, broadcast_addr: str | None, port: int) -> None:
    """Broadcast a magic packet for mac_address. Raises WakeError on failure."""
    packet = build_magic_packet(mac_address)
    target = (broadcast_addr or DEFAULT_BROADCAST_ADDR, port)
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.sendto(packet, target)
    except OSError as e:
        raise WakeError(f"Failed to send WoL packet: {e.strerror or e}") from e
    logger.info("Magic packet sent", extra={"target": f"{target[0]}:{target[1]}"})


async def request_shutdown(ip_address: str, settings: "Settings") -> None:
    """POST /shutdown to the agent on ip_address. Raises ShutdownAgentError on failure."""
    url = f"http://{ip_address}:{settings.SHUTDOWN_AGENT_PORT}/shutdown"
    headers = {}
    if settings.SHUTDOWN_AGENT_TOKEN is not None:
        headers["Authorization"] = f"Bearer {settings.SHUTDOWN_AGENT_TOKEN.get_secret_value()}"
    try:
        async with httpx.AsyncClient(timeout=settings.SHUTDOWN_AGENT_TIMEOUT_SEC) as client:
            resp = await client.post(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("Shutdown agent unreachable", extra={"ip_address": ip_address})
        raise ShutdownAgentError("Failed to contact agent") from e
    if resp.status_code >= 400:
        logger.warning(
            "Shutdown agent returned error",
            extra={"ip_address": ip_address, "status_code": resp.status_code},
        )
        raise ShutdownAgentError("Agent returned error", resp.status_code)
    logger.info("Shutdown requested", extra={"ip_address": ip_address})
