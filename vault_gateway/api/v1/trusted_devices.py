"""Trusted devices API endpoints.

All endpoints require a bearer identity token; the device set is always the
caller's own.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from vault_gateway.api.dependencies import TrustedDeviceServiceDep, UserDep
from vault_gateway.models.trusted_device import TrustedDevice
from vault_gateway.utils.datetime import isoformat_utc

router = APIRouter()
_log = structlog.get_logger()


# Request/Response Models


class RegisterDeviceRequest(BaseModel):
    """Request to trust the calling device."""

    model_config = ConfigDict(populate_by_name=True)

    device_token: str = Field(alias="deviceToken", min_length=1)
    device_name: str | None = Field(default=None, alias="deviceName")


class RegisterDeviceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    expires_at: str = Field(serialization_alias="expiresAt")


class CheckDeviceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_token: str | None = Field(default=None, alias="deviceToken")


class DeviceResponse(BaseModel):
    """Trusted device as shown to its owner. The token itself is never returned."""

    id: str
    device_name: str
    created_at: str | None
    expires_at: str | None
    last_used_at: str | None


class DeviceListResponse(BaseModel):
    devices: list[DeviceResponse]


def _device_to_response(device: TrustedDevice) -> DeviceResponse:
    return DeviceResponse(
        id=device.id,
        device_name=device.device_name,
        created_at=isoformat_utc(device.created_at),
        expires_at=isoformat_utc(device.expires_at),
        last_used_at=isoformat_utc(device.last_used_at),
    )


# Endpoints


@router.post("")
async def register_device(
    request: RegisterDeviceRequest,
    service: TrustedDeviceServiceDep,
    user_id: UserDep,
) -> JSONResponse:
    """Register (or re-register) the calling device as trusted."""
    expires_at = await service.register(user_id, request.device_token, request.device_name)
    body = RegisterDeviceResponse(expires_at=isoformat_utc(expires_at))
    return JSONResponse(content=body.model_dump(by_alias=True))


@router.post("/check")
async def check_device(
    request: CheckDeviceRequest,
    service: TrustedDeviceServiceDep,
    user_id: UserDep,
) -> JSONResponse:
    """Tell whether the device token is trusted for the caller."""
    if not request.device_token:
        return JSONResponse(
            status_code=400,
            content={"trusted": False, "error": "Missing device token"},
        )

    trusted = await service.check(user_id, request.device_token)
    _log.debug("device.check", user_id=user_id, trusted=trusted)
    return JSONResponse(content={"trusted": trusted})


@router.get("", response_model=DeviceListResponse)
async def list_devices(
    service: TrustedDeviceServiceDep,
    user_id: UserDep,
) -> DeviceListResponse:
    """List the caller's unexpired trusted devices, newest first."""
    devices = await service.list(user_id)
    return DeviceListResponse(devices=[_device_to_response(d) for d in devices])


@router.delete("/{device_id}", status_code=204)
async def revoke_device(
    device_id: str,
    service: TrustedDeviceServiceDep,
    user_id: UserDep,
) -> Response:
    """Stop trusting one of the caller's devices."""
    await service.revoke(user_id, device_id)
    return Response(status_code=204)
