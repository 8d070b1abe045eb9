"""Initial schema for accounts, subscriptions and device sync groups

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(256), unique=True, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )

    # Create devices table
    op.create_table(
        'devices',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.Integer,
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('device_key', sa.String(256), nullable=False),
        sa.Column('caption', sa.String(512), nullable=True),
        sa.Column('device_type', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'device_key', name='uq_device_user_key'),
    )
    op.create_index('ix_devices_user_id', 'devices', ['user_id'])

    # Create subscriptions table (soft-delete log)
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.Integer,
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column(
            'device_id',
            sa.Integer,
            sa.ForeignKey('devices.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('podcast_url', sa.String(2048), nullable=False),
        sa.Column('added_at', sa.BigInteger, nullable=False),
        sa.Column('removed_at', sa.BigInteger, nullable=True),
        sa.UniqueConstraint(
            'user_id', 'device_id', 'podcast_url', name='uq_subscription_device_url'
        ),
    )
    op.create_index('ix_subscriptions_user_device', 'subscriptions', ['user_id', 'device_id'])
    op.create_index('ix_subscriptions_added_at', 'subscriptions', ['added_at'])
    op.create_index('ix_subscriptions_removed_at', 'subscriptions', ['removed_at'])

    # Create device sync tables
    op.create_table(
        'device_sync_groups',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.Integer,
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_device_sync_groups_user_id', 'device_sync_groups', ['user_id'])

    op.create_table(
        'device_sync_members',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'sync_group_id',
            sa.Integer,
            sa.ForeignKey('device_sync_groups.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column(
            'device_id',
            sa.Integer,
            sa.ForeignKey('devices.id', ondelete='CASCADE'),
            nullable=False,
            unique=True
        ),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_device_sync_members_group_id', 'device_sync_members', ['sync_group_id'])


def downgrade() -> None:
    op.drop_table('device_sync_members')
    op.drop_table('device_sync_groups')
    op.drop_table('subscriptions')
    op.drop_table('devices')
    op.drop_table('users')
