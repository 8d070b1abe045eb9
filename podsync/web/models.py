"""
Pydantic models for web API request/response validation.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from podsync.sync.accounts import DEVICE_TYPES


# --- Subscription Models ---


class SubscriptionUploadRequest(BaseModel):
    """Incremental subscription changes uploaded by a device."""
    add: List[str] = Field(default_factory=list, description="Podcast URLs to subscribe to")
    remove: List[str] = Field(default_factory=list, description="Podcast URLs to unsubscribe from")
    timestamp: Optional[int] = Field(
        default=None, ge=0, description="Client time of the changes (epoch seconds); server time if omitted"
    )


class SubscriptionUploadResponse(BaseModel):
    """Result of an upload."""
    timestamp: int = Field(..., description="Use as `since` for the next poll")
    update_urls: List[List[str]] = Field(
        default_factory=list,
        description="[original, rewritten] pairs for URLs the server changed",
    )


class SubscriptionChangesResponse(BaseModel):
    """Subscription changes of a device since a timestamp."""
    add: List[str] = Field(default_factory=list)
    remove: List[str] = Field(default_factory=list)
    timestamp: int


# --- Device Sync Models ---


class SyncDevicesRequest(BaseModel):
    """Request to synchronize device sets and/or stop synchronizing devices."""
    synchronize: List[List[str]] = Field(
        default_factory=list, description="Sets of device ids to put in one sync group each"
    )
    stop_synchronize: List[str] = Field(
        default_factory=list,
        alias="stop-synchronize",
        description="Device ids to remove from their sync group",
    )

    model_config = ConfigDict(populate_by_name=True)


class SyncStatusResponse(BaseModel):
    """Synchronization state of all of a user's devices."""
    synchronized: List[List[str]] = Field(default_factory=list)
    not_synchronized: List[str] = Field(default_factory=list, alias="not-synchronized")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "synchronized": [["phone", "laptop"]],
                "not-synchronized": ["tablet"],
            }
        },
    )


# --- Device Models ---


class DeviceUpdateRequest(BaseModel):
    """Caption and type for a device."""
    caption: Optional[str] = Field(default=None, max_length=512)
    type: Optional[str] = Field(default=None, description="desktop, laptop, mobile, server or other")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DEVICE_TYPES:
            raise ValueError(f"Invalid device type: {v}")
        return v


class DeviceResponse(BaseModel):
    """A device as listed to clients."""
    id: str
    caption: str = ""
    type: str = "other"
    subscriptions: int = 0
