"""SQLAlchemy ORM models for accounts, subscriptions and device sync groups."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class User(Base):
    """Account owning a set of devices.

    Credentials live outside this service; only the username is needed to
    scope devices, subscriptions and sync groups.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    devices: Mapped[List["Device"]] = relationship(
        "Device", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        """Return a concise representation of the User instance."""
        return f"<User(id={self.id}, username={self.username!r})>"


class Device(Base):
    """A client installation registered under a user.

    `device_key` is the identifier chosen by the client and is only unique
    within the owning user.
    """

    __tablename__ = "devices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    device_key: Mapped[str] = mapped_column(String(256), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(512))
    device_type: Mapped[Optional[str]] = mapped_column(String(32))  # desktop, laptop, mobile, server, other

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="devices")

    __table_args__ = (
        UniqueConstraint("user_id", "device_key", name="uq_device_user_key"),
        Index("ix_devices_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the Device instance."""
        return f"<Device(id={self.id}, device_key={self.device_key!r})>"


class SubscriptionEvent(Base):
    """Membership of one podcast URL on one device.

    Rows are soft-deleted by stamping `removed_at` and reactivated in place
    when the URL is added again, so each (user, device, url) has exactly one
    row. Timestamps are epoch seconds as supplied by the uploading client.
    """

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    device_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False
    )
    podcast_url: Mapped[str] = mapped_column(String(2048), nullable=False)

    added_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    removed_at: Mapped[Optional[int]] = mapped_column(BigInteger)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "device_id", "podcast_url", name="uq_subscription_device_url"
        ),
        Index("ix_subscriptions_user_device", "user_id", "device_id"),
        Index("ix_subscriptions_added_at", "added_at"),
        Index("ix_subscriptions_removed_at", "removed_at"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the SubscriptionEvent instance."""
        return (
            f"<SubscriptionEvent(device_id={self.device_id}, "
            f"podcast_url={self.podcast_url!r}, removed_at={self.removed_at})>"
        )

    @property
    def is_active(self) -> bool:
        """Whether the row currently counts towards the device's subscriptions."""
        return self.removed_at is None


class DeviceSyncGroup(Base):
    """A set of a user's devices whose subscriptions are kept in step."""

    __tablename__ = "device_sync_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_device_sync_groups_user_id", "user_id"),)

    def __repr__(self) -> str:
        """Return a concise representation of the DeviceSyncGroup instance."""
        return f"<DeviceSyncGroup(id={self.id}, user_id={self.user_id})>"


class DeviceSyncMember(Base):
    """Membership of a device in a sync group. A device has at most one row."""

    __tablename__ = "device_sync_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sync_group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("device_sync_groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    device_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_device_sync_members_group_id", "sync_group_id"),)

    def __repr__(self) -> str:
        """Return a concise representation of the DeviceSyncMember instance."""
        return (
            f"<DeviceSyncMember(sync_group_id={self.sync_group_id}, "
            f"device_id={self.device_id})>"
        )
