"""Device synchronization groups.

A user's devices are partitioned into sync groups. Requests to synchronize
a set of devices merge every group those devices already belong to into one
surviving group: the one with the lowest id, or a fresh group when none of
the devices is grouped yet. Requests to stop synchronizing detach devices.

Each `update_sync_groups` call runs as a single transaction under the
user-scoped lock, so either all requested merges and detaches are committed
or none is.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from sqlalchemy.orm import Session

from podsync.db.database import Database
from podsync.db.device_group_store import DeviceGroupStore
from podsync.db.repository import SQLAlchemyAccountRepository
from podsync.errors import BadRequest
from podsync.utils import deduplicate_preserving_order

logger = logging.getLogger(__name__)

# Groups smaller than this exist in the database but are not reported as synchronized
MIN_SYNCHRONIZED_GROUP_SIZE = 2


@dataclass
class SyncStatus:
    """Externally visible synchronization state of a user's devices."""

    synchronized: List[List[str]] = field(default_factory=list)
    not_synchronized: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "synchronized": self.synchronized,
            "not-synchronized": self.not_synchronized,
        }


class SyncGroupManager:
    """Merges and splits device sync groups on behalf of a user."""

    def __init__(self, database: Database):
        self.database = database

    def get_sync_status(self, user_id: int) -> SyncStatus:
        """Current synchronized groups and unsynchronized devices of a user."""
        with self.database.transaction() as session:
            return self._read_status(session, user_id)

    def update_sync_groups(
        self,
        user_id: int,
        synchronize: Iterable[Iterable[str]],
        stop_synchronize: Iterable[str],
    ) -> SyncStatus:
        """
        Apply synchronize and stop-synchronize requests, then report the new state.

        Stop requests are applied first. Each synchronize request naming fewer
        than two distinct devices is ignored. Devices named in stop requests
        that do not exist are ignored.

        Parameters:
            user_id (int): Owner of the devices.
            synchronize: Sets of device keys that should end up in one group each.
            stop_synchronize: Device keys to detach from their groups.

        Returns:
            SyncStatus: State read back after the changes.

        Raises:
            BadRequest: If a synchronize request names an unknown device. Nothing is written.
            StorageError: If the database failed. Nothing is written.
        """
        with self.database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            groups = DeviceGroupStore(session)
            accounts.lock_user(user_id)

            # Resolve everything before the first write so a bad request has no side effects
            merge_requests = []
            for device_keys in synchronize:
                device_keys = deduplicate_preserving_order(device_keys)
                if len(device_keys) < 2:
                    logger.debug(f"Ignoring synchronize request with {len(device_keys)} device(s)")
                    continue
                merge_requests.append(
                    [self._resolve_device(accounts, user_id, key) for key in device_keys]
                )

            for device_key in deduplicate_preserving_order(stop_synchronize):
                device = accounts.find_device(user_id, device_key)
                if device is None:
                    logger.debug(f"Ignoring stop-synchronize for unknown device {device_key}")
                    continue
                self._detach(groups, device.id)

            for device_ids in merge_requests:
                self._merge(groups, user_id, device_ids)

            status = self._read_status(session, user_id)

        logger.info(
            f"Updated sync groups for user {user_id}: "
            f"{len(status.synchronized)} synchronized group(s)"
        )
        return status

    @staticmethod
    def _resolve_device(accounts: SQLAlchemyAccountRepository, user_id: int, device_key: str) -> int:
        device = accounts.find_device(user_id, device_key)
        if device is None:
            logger.warning(f"Sync request for user {user_id} names unknown device {device_key}")
            raise BadRequest(f"Device '{device_key}' not found")
        return device.id

    @staticmethod
    def _detach(groups: DeviceGroupStore, device_id: int) -> None:
        group_id = groups.remove_member(device_id)
        if group_id is not None and not groups.members_of(group_id):
            groups.delete_group(group_id)

    @staticmethod
    def _merge(groups: DeviceGroupStore, user_id: int, device_ids: List[int]) -> int:
        existing = sorted(
            {group_id for group_id in map(groups.group_of, device_ids) if group_id is not None}
        )

        if existing:
            target = existing[0]
            for source in existing[1:]:
                groups.merge_into(target, source)
        else:
            target = groups.create_group(user_id)
            logger.info(f"Created sync group {target} for user {user_id}")

        for device_id in device_ids:
            current = groups.group_of(device_id)
            if current == target:
                continue
            if current is not None:
                groups.remove_member(device_id)
            groups.add_member(target, device_id)

        return target

    @staticmethod
    def _read_status(session: Session, user_id: int) -> SyncStatus:
        accounts = SQLAlchemyAccountRepository(session)
        groups = DeviceGroupStore(session)

        devices = accounts.list_devices(user_id)
        key_by_id = {device.id: device.device_key for device in devices}

        status = SyncStatus()
        synced = set()
        for group_id in groups.groups_of(user_id):
            members = [key_by_id[d] for d in groups.members_of(group_id) if d in key_by_id]
            if len(members) >= MIN_SYNCHRONIZED_GROUP_SIZE:
                status.synchronized.append(members)
                synced.update(members)

        status.not_synchronized = [
            device.device_key for device in devices if device.device_key not in synced
        ]
        return status
