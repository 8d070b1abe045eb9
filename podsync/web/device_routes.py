"""gpodder device endpoints."""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Request

from podsync.sync.accounts import AccountService
from podsync.web.dependencies import resolve_user
from podsync.web.models import DeviceResponse, DeviceUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/2/devices", tags=["devices"])


@router.get("/{username}.json", response_model=List[DeviceResponse])
async def list_devices(request: Request, username: str):
    """List the user's devices with their subscription counts."""
    accounts: AccountService = request.app.state.accounts
    user_id = await resolve_user(request, username)

    devices = await asyncio.to_thread(accounts.list_devices, user_id)
    return [DeviceResponse(**device.to_dict()) for device in devices]


@router.post("/{username}/{device_id}.json")
async def update_device(
    request: Request,
    username: str,
    device_id: str,
    body: DeviceUpdateRequest,
):
    """Register a device or update its caption and type."""
    accounts: AccountService = request.app.state.accounts
    user_id = await resolve_user(request, username)

    await asyncio.to_thread(
        accounts.update_device, user_id, device_id, body.caption, body.type
    )
    return {}
