"""Subscription reconciliation and device sync-group management."""

from .accounts import AccountService, DeviceInfo
from .group_manager import SyncGroupManager, SyncStatus
from .reconciler import ChangeReconciler, ChangeSet, UploadResult

__all__ = [
    "AccountService",
    "ChangeReconciler",
    "ChangeSet",
    "DeviceInfo",
    "SyncGroupManager",
    "SyncStatus",
    "UploadResult",
]
