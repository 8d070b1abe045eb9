"""Relational primitives over sync groups and their memberships.

No policy lives here; `SyncGroupManager` decides when to create, merge and
detach. The store is bound to the session of the caller's transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from .models import DeviceSyncGroup, DeviceSyncMember

logger = logging.getLogger(__name__)


class DeviceGroupStore:
    """Sync groups of one database session."""

    def __init__(self, session: Session):
        self.session = session

    def create_group(self, user_id: int) -> int:
        """Create an empty group for `user_id` and return its id."""
        group = DeviceSyncGroup(user_id=user_id)
        self.session.add(group)
        self.session.flush()
        logger.debug(f"Created sync group {group.id} for user {user_id}")
        return group.id

    def delete_group(self, group_id: int) -> None:
        """Delete a group; its memberships go with it."""
        self.session.execute(
            delete(DeviceSyncMember).where(DeviceSyncMember.sync_group_id == group_id)
        )
        self.session.execute(delete(DeviceSyncGroup).where(DeviceSyncGroup.id == group_id))

    def add_member(self, group_id: int, device_id: int) -> None:
        """Attach an ungrouped device to a group."""
        self.session.execute(
            insert(DeviceSyncMember).values(sync_group_id=group_id, device_id=device_id)
        )

    def remove_member(self, device_id: int) -> Optional[int]:
        """
        Detach a device from its group.

        Returns:
            The id of the group the device left, or None if it was ungrouped.
        """
        group_id = self.group_of(device_id)
        if group_id is None:
            return None
        self.session.execute(
            delete(DeviceSyncMember).where(DeviceSyncMember.device_id == device_id)
        )
        return group_id

    def group_of(self, device_id: int) -> Optional[int]:
        """Group id the device belongs to, if any."""
        stmt = select(DeviceSyncMember.sync_group_id).where(
            DeviceSyncMember.device_id == device_id
        )
        return self.session.scalar(stmt)

    def members_of(self, group_id: int) -> List[int]:
        """Device ids in a group, in the order they joined."""
        stmt = (
            select(DeviceSyncMember.device_id)
            .where(DeviceSyncMember.sync_group_id == group_id)
            .order_by(DeviceSyncMember.id)
        )
        return list(self.session.scalars(stmt).all())

    def groups_of(self, user_id: int) -> List[int]:
        """Ids of all of a user's groups, ascending."""
        stmt = (
            select(DeviceSyncGroup.id)
            .where(DeviceSyncGroup.user_id == user_id)
            .order_by(DeviceSyncGroup.id)
        )
        return list(self.session.scalars(stmt).all())

    def merge_into(self, target_group_id: int, source_group_id: int) -> None:
        """Move every member of `source` into `target`, then delete `source`."""
        self.session.execute(
            update(DeviceSyncMember)
            .where(DeviceSyncMember.sync_group_id == source_group_id)
            .values(sync_group_id=target_group_id)
        )
        self.delete_group(source_group_id)
        logger.debug(f"Merged sync group {source_group_id} into {target_group_id}")
