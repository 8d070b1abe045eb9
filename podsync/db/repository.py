"""Repository for users and devices.

Repositories here are bound to a session opened by `Database.transaction()`
so that lookups, device registration and the user lock all take part in the
caller's transaction.
"""

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from .models import Device, SubscriptionEvent, User

logger = logging.getLogger(__name__)


class AccountRepositoryInterface(ABC):
    """Abstract interface for user and device persistence."""

    # --- User Operations ---

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        pass

    @abstractmethod
    def get_or_create_user(self, username: str) -> User:
        """Return the user with `username`, creating it when missing."""
        pass

    @abstractmethod
    def lock_user(self, user_id: int) -> None:
        """
        Take the user-scoped write lock for the rest of the transaction.

        Concurrent writers for the same user block here until the holder
        commits or rolls back.
        """
        pass

    # --- Device Operations ---

    @abstractmethod
    def find_device(self, user_id: int, device_key: str) -> Optional[Device]:
        """Get a user's device by its client-chosen key."""
        pass

    @abstractmethod
    def get_or_create_device(
        self,
        user_id: int,
        device_key: str,
        caption: Optional[str] = None,
        device_type: Optional[str] = None,
    ) -> Device:
        """Return the device, registering it on first use."""
        pass

    @abstractmethod
    def list_devices(self, user_id: int) -> List[Device]:
        """List a user's devices in registration order."""
        pass

    @abstractmethod
    def list_devices_with_counts(self, user_id: int) -> List[Tuple[Device, int]]:
        """List a user's devices with their active subscription counts."""
        pass

    @abstractmethod
    def update_device(self, device: Device, **kwargs) -> Device:
        """Update caption and/or type of a device."""
        pass


class SQLAlchemyAccountRepository(AccountRepositoryInterface):
    """SQLAlchemy-based implementation of the account repository."""

    def __init__(self, session: Session):
        self.session = session

    # --- User Operations ---

    def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        stmt = select(User).where(User.username == username)
        return self.session.scalar(stmt)

    def get_or_create_user(self, username: str) -> User:
        """Return the user with `username`, creating it when missing."""
        user = self.get_user_by_username(username)
        if user:
            return user

        user = User(username=username, created_at=datetime.now(UTC))
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created user: {username}")
        return user

    def lock_user(self, user_id: int) -> None:
        """
        Take the user-scoped write lock for the rest of the transaction.

        Renders SELECT ... FOR UPDATE on backends with row locks. SQLite has
        no row locks and already holds the database write lock from
        BEGIN IMMEDIATE, so the statement is a plain SELECT there.
        """
        stmt = select(User.id).where(User.id == user_id).with_for_update()
        self.session.execute(stmt)

    # --- Device Operations ---

    def find_device(self, user_id: int, device_key: str) -> Optional[Device]:
        """Get a user's device by its client-chosen key."""
        stmt = select(Device).where(
            Device.user_id == user_id,
            Device.device_key == device_key,
        )
        return self.session.scalar(stmt)

    def get_or_create_device(
        self,
        user_id: int,
        device_key: str,
        caption: Optional[str] = None,
        device_type: Optional[str] = None,
    ) -> Device:
        """
        Return the device, registering it on first use.

        gpodder clients never register devices explicitly before uploading,
        so the first reference creates the row.
        """
        device = self.find_device(user_id, device_key)
        if device:
            logger.debug(f"Device found: {device_key}")
            return device

        now = datetime.now(UTC)
        device = Device(
            user_id=user_id,
            device_key=device_key,
            caption=caption or "Unknown Device",
            device_type=device_type or "other",
            created_at=now,
            updated_at=now,
        )
        self.session.add(device)
        self.session.flush()
        logger.info(f"Created device: {device_key} for user {user_id}")
        return device

    def list_devices(self, user_id: int) -> List[Device]:
        """List a user's devices in registration order."""
        stmt = select(Device).where(Device.user_id == user_id).order_by(Device.id)
        return list(self.session.scalars(stmt).all())

    def list_devices_with_counts(self, user_id: int) -> List[Tuple[Device, int]]:
        """List a user's devices with their active subscription counts, in one query."""
        stmt = (
            select(Device, func.count(SubscriptionEvent.id))
            .outerjoin(
                SubscriptionEvent,
                and_(
                    SubscriptionEvent.device_id == Device.id,
                    SubscriptionEvent.removed_at.is_(None),
                ),
            )
            .where(Device.user_id == user_id)
            .group_by(Device.id)
            .order_by(Device.id)
        )
        return [(device, count) for device, count in self.session.execute(stmt).all()]

    def update_device(self, device: Device, **kwargs) -> Device:
        """
        Update attributes of a device.

        Only `caption` and `device_type` may change; other keys are ignored.
        """
        for key in ("caption", "device_type"):
            value = kwargs.get(key)
            if value is not None:
                setattr(device, key, value)
        device.updated_at = datetime.now(UTC)
        self.session.flush()
        logger.debug(f"Updated device {device.device_key}: {list(kwargs.keys())}")
        return device
