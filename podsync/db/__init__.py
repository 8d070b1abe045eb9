"""Database module for subscription and device-sync persistence.

Provides:
- SQLAlchemy ORM models (User, Device, SubscriptionEvent, DeviceSyncGroup, DeviceSyncMember)
- Database engine and transaction management
- Account repository, subscription store and device group store
- Factory functions for creating databases
"""

from .database import Database
from .device_group_store import DeviceGroupStore
from .factory import create_database, create_database_from_config
from .models import (
    Base,
    Device,
    DeviceSyncGroup,
    DeviceSyncMember,
    SubscriptionEvent,
    User,
)
from .repository import AccountRepositoryInterface, SQLAlchemyAccountRepository
from .subscription_store import SubscriptionDelta, SubscriptionStore

__all__ = [
    "Base",
    "User",
    "Device",
    "SubscriptionEvent",
    "DeviceSyncGroup",
    "DeviceSyncMember",
    "Database",
    "AccountRepositoryInterface",
    "SQLAlchemyAccountRepository",
    "DeviceGroupStore",
    "SubscriptionDelta",
    "SubscriptionStore",
    "create_database",
    "create_database_from_config",
]
