"""
Pytest configuration and fixtures for podsync tests.

This module runs before any test imports, setting up the test environment.
Environment variables are explicitly set to ensure deterministic test behavior
regardless of external environment configuration.
"""

import os

import pytest

from podsync.db.factory import create_database
from podsync.db.repository import SQLAlchemyAccountRepository

# Tests never touch the development database
os.environ["DATABASE_URL"] = "sqlite:///./podsync-test.db"

# No bootstrap account unless a test asks for one
os.environ["ADMIN_USERNAME"] = ""

# Keep the rate limiter out of the way of API tests
os.environ["RATE_LIMIT"] = "10000/minute"

os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture
def database(tmp_path):
    """
    Create a temporary SQLite-backed database with all tables.

    Yields the database and disposes its engine when the test is done.
    """
    db = create_database(f"sqlite:///{tmp_path / 'test.db'}", create_tables=True)
    yield db
    db.close()


@pytest.fixture
def user_id(database):
    """Id of a freshly created user `alice`."""
    with database.transaction() as session:
        return SQLAlchemyAccountRepository(session).get_or_create_user("alice").id


@pytest.fixture
def register_devices(database, user_id):
    """
    Return a helper that registers device keys for `alice` and returns their ids.
    """
    def _register(*device_keys):
        with database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            return [accounts.get_or_create_device(user_id, key).id for key in device_keys]

    return _register
