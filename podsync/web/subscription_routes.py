"""gpodder subscription endpoints.

Provides endpoints for:
- Polling a device's subscriptions, fully or as changes since a timestamp
- Uploading incremental add/remove changes
- Replacing a device's complete subscription list
- Listing the union of subscriptions across all devices
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Query, Request

from podsync.sync.reconciler import ChangeReconciler
from podsync.web.dependencies import resolve_user
from podsync.web.models import (
    SubscriptionChangesResponse,
    SubscriptionUploadRequest,
    SubscriptionUploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscriptions"])


@router.get("/api/2/subscriptions/{username}/{device_id}.json")
async def get_subscriptions(
    request: Request,
    username: str,
    device_id: str,
    since: Optional[int] = Query(default=None, ge=0),
):
    """
    Get a device's subscriptions.

    With `since`, returns `{add, remove, timestamp}` describing the changes
    after that time; without it, returns the plain list of subscribed URLs.
    """
    reconciler: ChangeReconciler = request.app.state.reconciler
    user_id = await resolve_user(request, username)

    if since is None:
        return await asyncio.to_thread(reconciler.subscriptions, user_id, device_id)

    changes = await asyncio.to_thread(reconciler.changes_since, user_id, device_id, since)
    return SubscriptionChangesResponse(**changes.to_dict())


@router.post(
    "/api/2/subscriptions/{username}/{device_id}.json",
    response_model=SubscriptionUploadResponse,
)
async def upload_subscriptions(
    request: Request,
    username: str,
    device_id: str,
    body: SubscriptionUploadRequest,
):
    """
    Upload subscription changes of a device.

    A URL in both `add` and `remove` rejects the whole upload with 400.
    URLs that are not HTTP(S) are replaced by "" and listed in `update_urls`.
    """
    reconciler: ChangeReconciler = request.app.state.reconciler
    user_id = await resolve_user(request, username)

    result = await asyncio.to_thread(
        reconciler.upload_changes,
        user_id,
        device_id,
        body.add,
        body.remove,
        body.timestamp,
    )
    return SubscriptionUploadResponse(**result.to_dict())


@router.get("/subscriptions/{username}/{device_id}.json")
async def get_device_subscriptions_simple(request: Request, username: str, device_id: str):
    """Plain list of a device's subscribed URLs."""
    reconciler: ChangeReconciler = request.app.state.reconciler
    user_id = await resolve_user(request, username)
    return await asyncio.to_thread(reconciler.subscriptions, user_id, device_id)


@router.put(
    "/subscriptions/{username}/{device_id}.json",
    response_model=SubscriptionUploadResponse,
)
async def replace_subscriptions(
    request: Request,
    username: str,
    device_id: str,
    urls: List[str] = Body(...),
):
    """Replace a device's subscriptions with the uploaded list."""
    reconciler: ChangeReconciler = request.app.state.reconciler
    user_id = await resolve_user(request, username)

    result = await asyncio.to_thread(reconciler.replace_subscriptions, user_id, device_id, urls)
    logger.info(
        f"Replaced subscriptions of {username}/{device_id}: "
        f"+{len(result.add)} -{len(result.remove)}"
    )
    return SubscriptionUploadResponse(**result.to_dict())


@router.get("/subscriptions/{username}.json")
async def get_all_subscriptions_simple(request: Request, username: str):
    """Union of the subscriptions of all the user's devices."""
    reconciler: ChangeReconciler = request.app.state.reconciler
    user_id = await resolve_user(request, username)
    return await asyncio.to_thread(reconciler.all_subscriptions, user_id)
