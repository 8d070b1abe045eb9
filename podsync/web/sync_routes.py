"""gpodder device synchronization endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Request

from podsync.sync.group_manager import SyncGroupManager
from podsync.web.dependencies import resolve_user
from podsync.web.models import SyncDevicesRequest, SyncStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/2/sync-devices", tags=["sync-devices"])


@router.get("/{username}.json", response_model=SyncStatusResponse)
async def get_sync_status(request: Request, username: str):
    """Get which of the user's devices are synchronized with each other."""
    manager: SyncGroupManager = request.app.state.sync_manager
    user_id = await resolve_user(request, username)

    status = await asyncio.to_thread(manager.get_sync_status, user_id)
    return SyncStatusResponse(**status.to_dict())


@router.post("/{username}.json", response_model=SyncStatusResponse)
async def update_sync_groups(request: Request, username: str, body: SyncDevicesRequest):
    """
    Synchronize sets of devices and/or stop synchronizing devices.

    Stop requests are applied before synchronize requests. An unknown device
    in a synchronize request rejects the whole request with 400.
    """
    manager: SyncGroupManager = request.app.state.sync_manager
    user_id = await resolve_user(request, username)

    status = await asyncio.to_thread(
        manager.update_sync_groups, user_id, body.synchronize, body.stop_synchronize
    )
    return SyncStatusResponse(**status.to_dict())
