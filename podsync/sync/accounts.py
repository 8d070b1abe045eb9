"""User and device lookups used by the request layer."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from podsync.db.database import Database
from podsync.db.models import Device
from podsync.db.repository import SQLAlchemyAccountRepository
from podsync.errors import NotFound

logger = logging.getLogger(__name__)

DEVICE_TYPES = ("desktop", "laptop", "mobile", "server", "other")


@dataclass
class DeviceInfo:
    """A device as listed to clients."""

    id: str
    caption: str
    type: str
    subscriptions: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "caption": self.caption,
            "type": self.type,
            "subscriptions": self.subscriptions,
        }


class AccountService:
    """Resolves usernames and manages device metadata."""

    def __init__(self, database: Database):
        self.database = database

    def resolve_user(self, username: str) -> int:
        """
        Map a username to its user id.

        Raises:
            NotFound: If no such user exists.
        """
        with self.database.transaction() as session:
            user = SQLAlchemyAccountRepository(session).get_user_by_username(username)
            if user is None:
                raise NotFound(f"User '{username}' not found")
            return user.id

    def ensure_user(self, username: str) -> int:
        """Create the user if needed and return its id."""
        with self.database.transaction() as session:
            return SQLAlchemyAccountRepository(session).get_or_create_user(username).id

    def list_devices(self, user_id: int) -> List[DeviceInfo]:
        """Devices of a user with their active subscription counts."""
        with self.database.transaction() as session:
            rows = SQLAlchemyAccountRepository(session).list_devices_with_counts(user_id)
            return [
                DeviceInfo(
                    id=device.device_key,
                    caption=device.caption or "",
                    type=device.device_type or "other",
                    subscriptions=count,
                )
                for device, count in rows
            ]

    def update_device(
        self,
        user_id: int,
        device_key: str,
        caption: Optional[str] = None,
        device_type: Optional[str] = None,
    ) -> Device:
        """
        Register a device or update its caption and type.

        Takes the user lock before looking the device up, as uploads do.
        """
        with self.database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            accounts.lock_user(user_id)
            device = accounts.get_or_create_device(user_id, device_key, caption, device_type)
            return accounts.update_device(device, caption=caption, device_type=device_type)
