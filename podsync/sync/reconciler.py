"""Request-facing subscription reconciliation.

Applies client policy before anything reaches the store: scheme sanitation
with reported rewrites, add/remove conflict rejection and server-side
timestamps.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from podsync.db.subscription_store import SubscriptionStore
from podsync.errors import ConflictingChange
from podsync.utils import deduplicate_preserving_order, sanitize_urls

logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    """Server time in epoch seconds."""
    return int(time.time())


@dataclass
class UploadResult:
    """Outcome of an upload: what was accepted and which URLs were rewritten."""

    timestamp: int
    add: List[str] = field(default_factory=list)
    remove: List[str] = field(default_factory=list)
    update_urls: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "update_urls": [list(pair) for pair in self.update_urls],
        }


@dataclass
class ChangeSet:
    """Changes of one device since a client-supplied timestamp."""

    add: List[str]
    remove: List[str]
    timestamp: int

    def to_dict(self) -> dict:
        return {"add": self.add, "remove": self.remove, "timestamp": self.timestamp}


def _accepted(urls: List[str]) -> List[str]:
    # Sanitized-away URLs stay behind as "" placeholders and are never stored
    return deduplicate_preserving_order(url for url in urls if url)


class ChangeReconciler:
    """Validates client uploads and delegates to the subscription store."""

    def __init__(self, store: SubscriptionStore):
        self.store = store

    def upload_changes(
        self,
        user_id: int,
        device_key: str,
        add: Optional[Iterable[str]] = None,
        remove: Optional[Iterable[str]] = None,
        timestamp: Optional[int] = None,
    ) -> UploadResult:
        """
        Apply an incremental add/remove upload from a device.

        Non-HTTP(S) URLs are rewritten to "" and reported in `update_urls`
        instead of failing the request.

        Raises:
            ConflictingChange: If a URL appears in both `add` and `remove`. Nothing is written.
            StorageError: If the database failed.
        """
        sanitized_add, add_updates = sanitize_urls(add or [])
        sanitized_remove, remove_updates = sanitize_urls(remove or [])

        accepted_add = _accepted(sanitized_add)
        accepted_remove = _accepted(sanitized_remove)

        remove_set = set(accepted_remove)
        for url in accepted_add:
            if url in remove_set:
                logger.warning(f"Rejected upload for device {device_key}: {url} in add and remove")
                raise ConflictingChange(url)

        update_urls = add_updates + remove_updates
        if update_urls:
            logger.warning(f"Rewrote {len(update_urls)} invalid URLs from device {device_key}")

        if timestamp is None:
            timestamp = current_timestamp()

        self.store.apply_changes(user_id, device_key, accepted_add, accepted_remove, timestamp)

        return UploadResult(
            timestamp=timestamp,
            add=accepted_add,
            remove=accepted_remove,
            update_urls=update_urls,
        )

    def replace_subscriptions(
        self,
        user_id: int,
        device_key: str,
        urls: Iterable[str],
        timestamp: Optional[int] = None,
    ) -> UploadResult:
        """
        Make `urls` the complete subscription list of a device.

        Returns:
            UploadResult: `add` and `remove` hold the diff that was applied.
        """
        sanitized, update_urls = sanitize_urls(urls)
        if update_urls:
            logger.warning(f"Rewrote {len(update_urls)} invalid URLs from device {device_key}")

        if timestamp is None:
            timestamp = current_timestamp()

        delta = self.store.reconcile_full_state(
            user_id, device_key, _accepted(sanitized), timestamp
        )
        return UploadResult(
            timestamp=timestamp,
            add=delta.added,
            remove=delta.removed,
            update_urls=update_urls,
        )

    def changes_since(self, user_id: int, device_key: str, since: int) -> ChangeSet:
        """
        Changes after `since`, stamped with the server time of the read.

        Timestamps have one-second resolution and `since` is exclusive, so a
        write stamped in the same second as this read is not reported by the
        next poll that passes the returned timestamp back.
        """
        added, removed = self.store.changes_since(user_id, device_key, since)
        return ChangeSet(add=added, remove=removed, timestamp=current_timestamp())

    def subscriptions(self, user_id: int, device_key: str) -> List[str]:
        """Current subscriptions of one device."""
        return self.store.current_state(user_id, device_key)

    def all_subscriptions(self, user_id: int) -> List[str]:
        """Current subscriptions across all of the user's devices."""
        return self.store.current_state_all_devices(user_id)
