"""Append/soft-delete log of per-device podcast subscriptions.

A device's current subscriptions are the URLs whose row has no
`removed_at`. Removing a URL stamps `removed_at`; adding it again
reactivates the same row, so the table doubles as the change log used for
since-timestamp polling.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from podsync.utils import deduplicate_preserving_order

from .database import Database
from .models import SubscriptionEvent
from .repository import SQLAlchemyAccountRepository

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionDelta:
    """URLs that were actually activated or deactivated by one write."""

    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


class SubscriptionStore:
    """Transactional access to the subscriptions table."""

    def __init__(self, database: Database):
        self.database = database

    # --- Writes ---

    def apply_changes(
        self,
        user_id: int,
        device_key: str,
        add: Iterable[str],
        remove: Iterable[str],
        timestamp: int,
    ) -> SubscriptionDelta:
        """
        Activate every `add` URL and deactivate every active `remove` URL.

        Adds are applied before removes. Unknown devices are registered. The
        whole call is one transaction: on failure nothing is written.

        Parameters:
            user_id (int): Owner of the device.
            device_key (str): Client-chosen device identifier.
            add: URLs to activate; an inactive row is reactivated, a missing one inserted.
            remove: URLs to deactivate; URLs without an active row are ignored.
            timestamp (int): Epoch seconds stamped on every change.

        Returns:
            SubscriptionDelta: URLs whose state actually changed.

        Raises:
            StorageError: If the database failed.
        """
        with self.database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            accounts.lock_user(user_id)
            device = accounts.get_or_create_device(user_id, device_key)
            delta = self._apply(session, user_id, device.id, add, remove, timestamp)

        logger.info(
            f"Applied {len(delta.added) + len(delta.removed)} subscription changes "
            f"for device {device_key}"
        )
        return delta

    def reconcile_full_state(
        self,
        user_id: int,
        device_key: str,
        desired: Iterable[str],
        timestamp: int,
    ) -> SubscriptionDelta:
        """
        Move a device's subscriptions to exactly `desired` with the minimal diff.

        URLs already active and still desired are left untouched, so calling
        this twice with the same `desired` writes nothing the second time.

        Returns:
            SubscriptionDelta: The URLs added and removed to reach `desired`.
        """
        desired = deduplicate_preserving_order(desired)

        with self.database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            accounts.lock_user(user_id)
            device = accounts.get_or_create_device(user_id, device_key)

            current = self._active_urls(session, user_id, device.id)
            current_set = set(current)
            desired_set = set(desired)
            to_add = [url for url in desired if url not in current_set]
            to_remove = [url for url in current if url not in desired_set]

            delta = self._apply(session, user_id, device.id, to_add, to_remove, timestamp)

        if delta.is_empty:
            logger.debug(f"Subscriptions for device {device_key} already up to date")
        else:
            logger.info(
                f"Reconciled device {device_key}: "
                f"+{len(delta.added)} -{len(delta.removed)}"
            )
        return delta

    def _apply(
        self,
        session: Session,
        user_id: int,
        device_id: int,
        add: Iterable[str],
        remove: Iterable[str],
        timestamp: int,
    ) -> SubscriptionDelta:
        add = deduplicate_preserving_order(add)
        remove = deduplicate_preserving_order(remove)
        rows = self._rows_for(session, user_id, device_id, add + remove)
        delta = SubscriptionDelta()

        for url in add:
            row = rows.get(url)
            if row is None:
                row = SubscriptionEvent(
                    user_id=user_id,
                    device_id=device_id,
                    podcast_url=url,
                    added_at=timestamp,
                )
                session.add(row)
                rows[url] = row
            elif row.removed_at is not None:
                row.removed_at = None
                row.added_at = timestamp
            else:
                continue
            delta.added.append(url)

        for url in remove:
            row = rows.get(url)
            if row is None or row.removed_at is not None:
                continue
            row.removed_at = timestamp
            delta.removed.append(url)

        session.flush()
        return delta

    # --- Reads ---

    def current_state(self, user_id: int, device_key: str) -> List[str]:
        """
        URLs the device is subscribed to, oldest subscription first.

        An unknown device has no subscriptions.
        """
        with self.database.transaction() as session:
            device_id = self._device_id(session, user_id, device_key)
            if device_id is None:
                return []
            return self._active_urls(session, user_id, device_id)

    def current_state_all_devices(self, user_id: int) -> List[str]:
        """Union of the active subscriptions of all of a user's devices, sorted."""
        with self.database.transaction() as session:
            stmt = (
                select(SubscriptionEvent.podcast_url)
                .where(
                    SubscriptionEvent.user_id == user_id,
                    SubscriptionEvent.removed_at.is_(None),
                )
                .distinct()
                .order_by(SubscriptionEvent.podcast_url)
            )
            return list(session.scalars(stmt).all())

    def changes_since(
        self, user_id: int, device_key: str, since: int
    ) -> Tuple[List[str], List[str]]:
        """
        Changes to a device's subscriptions strictly after `since`.

        A URL that was added and then removed after `since` is reported only
        as removed: the result describes the net effect, not every event.

        Returns:
            Tuple of (added URLs ordered by `added_at`, removed URLs ordered by `removed_at`).
        """
        with self.database.transaction() as session:
            device_id = self._device_id(session, user_id, device_key)
            if device_id is None:
                return [], []

            added_stmt = (
                select(SubscriptionEvent.podcast_url)
                .where(
                    SubscriptionEvent.user_id == user_id,
                    SubscriptionEvent.device_id == device_id,
                    SubscriptionEvent.removed_at.is_(None),
                    SubscriptionEvent.added_at > since,
                )
                .order_by(SubscriptionEvent.added_at, SubscriptionEvent.id)
            )
            removed_stmt = (
                select(SubscriptionEvent.podcast_url)
                .where(
                    SubscriptionEvent.user_id == user_id,
                    SubscriptionEvent.device_id == device_id,
                    SubscriptionEvent.removed_at.is_not(None),
                    SubscriptionEvent.removed_at > since,
                )
                .order_by(SubscriptionEvent.removed_at, SubscriptionEvent.id)
            )
            added = list(session.scalars(added_stmt).all())
            removed = list(session.scalars(removed_stmt).all())

        return added, removed

    def count(self, user_id: int, device_key: Optional[str] = None) -> int:
        """Number of active subscriptions of one device, or of the whole user."""
        with self.database.transaction() as session:
            stmt = select(func.count(SubscriptionEvent.id)).where(
                SubscriptionEvent.user_id == user_id,
                SubscriptionEvent.removed_at.is_(None),
            )
            if device_key is not None:
                device_id = self._device_id(session, user_id, device_key)
                if device_id is None:
                    return 0
                stmt = stmt.where(SubscriptionEvent.device_id == device_id)
            return session.scalar(stmt) or 0

    # --- Helpers ---

    @staticmethod
    def _device_id(session: Session, user_id: int, device_key: str) -> Optional[int]:
        device = SQLAlchemyAccountRepository(session).find_device(user_id, device_key)
        return device.id if device else None

    @staticmethod
    def _active_urls(session: Session, user_id: int, device_id: int) -> List[str]:
        stmt = (
            select(SubscriptionEvent.podcast_url)
            .where(
                SubscriptionEvent.user_id == user_id,
                SubscriptionEvent.device_id == device_id,
                SubscriptionEvent.removed_at.is_(None),
            )
            .order_by(SubscriptionEvent.added_at, SubscriptionEvent.id)
        )
        return list(session.scalars(stmt).all())

    @staticmethod
    def _rows_for(
        session: Session, user_id: int, device_id: int, urls: List[str]
    ) -> Dict[str, SubscriptionEvent]:
        if not urls:
            return {}
        stmt = select(SubscriptionEvent).where(
            SubscriptionEvent.user_id == user_id,
            SubscriptionEvent.device_id == device_id,
            SubscriptionEvent.podcast_url.in_(set(urls)),
        )
        return {row.podcast_url: row for row in session.scalars(stmt).all()}
