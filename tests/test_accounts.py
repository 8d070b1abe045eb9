"""Tests for user resolution and device management."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import event, func, select

from podsync.db.models import Device
from podsync.db.repository import SQLAlchemyAccountRepository
from podsync.db.subscription_store import SubscriptionStore
from podsync.errors import NotFound
from podsync.sync.accounts import AccountService


@pytest.fixture
def accounts(database):
    return AccountService(database)


@pytest.fixture
def store(database):
    return SubscriptionStore(database)


@pytest.fixture
def select_counter(database):
    """Collect SELECT statements sent to the database."""
    selects = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT"):
            selects.append(statement)

    event.listen(database.engine, "before_cursor_execute", _record)
    yield selects
    event.remove(database.engine, "before_cursor_execute", _record)


class TestResolveUser:
    """Tests for resolve_user and ensure_user."""

    def test_known_user(self, accounts, user_id):
        assert accounts.resolve_user("alice") == user_id

    def test_unknown_user(self, accounts, user_id):
        with pytest.raises(NotFound) as exc_info:
            accounts.resolve_user("bob")
        assert exc_info.value.message == "User 'bob' not found"

    def test_ensure_user_is_idempotent(self, accounts):
        first = accounts.ensure_user("carol")
        assert accounts.ensure_user("carol") == first


class TestListDevices:
    """Tests for list_devices."""

    def test_counts_active_subscriptions(self, accounts, store, user_id, register_devices):
        register_devices("empty")
        store.apply_changes(user_id, "phone", add=["http://a", "http://b"], remove=[], timestamp=100)
        store.apply_changes(user_id, "phone", add=[], remove=["http://a"], timestamp=200)
        store.apply_changes(user_id, "laptop", add=["http://a"], remove=[], timestamp=100)

        devices = {device.id: device.subscriptions for device in accounts.list_devices(user_id)}

        assert devices == {"empty": 0, "phone": 1, "laptop": 1}

    def test_single_query_for_all_devices(self, accounts, store, user_id, select_counter):
        for key in ("d1", "d2", "d3", "d4"):
            store.apply_changes(user_id, key, add=["http://a"], remove=[], timestamp=100)

        select_counter.clear()
        devices = accounts.list_devices(user_id)

        assert [device.id for device in devices] == ["d1", "d2", "d3", "d4"]
        assert len(select_counter) == 1

    def test_other_users_devices_excluded(self, accounts, store, user_id):
        other_id = accounts.ensure_user("bob")
        store.apply_changes(other_id, "phone", add=["http://a"], remove=[], timestamp=100)

        assert accounts.list_devices(user_id) == []


class TestUpdateDevice:
    """Tests for update_device."""

    def test_registers_new_device(self, accounts, user_id):
        device = accounts.update_device(user_id, "phone", caption="My phone", device_type="mobile")

        assert device.caption == "My phone"
        assert device.device_type == "mobile"

    def test_takes_user_lock_before_lookup(self, accounts, user_id, monkeypatch):
        calls = []
        original_find = SQLAlchemyAccountRepository.find_device

        def lock_user(repo, locked_user_id):
            calls.append(("lock", locked_user_id))

        def find_device(repo, owner_id, device_key):
            calls.append(("find", device_key))
            return original_find(repo, owner_id, device_key)

        monkeypatch.setattr(SQLAlchemyAccountRepository, "lock_user", lock_user)
        monkeypatch.setattr(SQLAlchemyAccountRepository, "find_device", find_device)

        accounts.update_device(user_id, "phone", caption="Phone")

        assert calls[0] == ("lock", user_id)
        assert ("find", "phone") in calls

    def test_concurrent_registration_creates_one_device(self, accounts, store, user_id, database):
        """Device updates racing first uploads to the same new keys never fail."""
        keys = ["k1", "k2", "k3"]

        def update(i):
            accounts.update_device(user_id, keys[i % 3], caption=f"caption {i}")

        def upload(i):
            store.apply_changes(user_id, keys[i % 3], add=[f"http://feed/{i}"], remove=[], timestamp=100 + i)

        with ThreadPoolExecutor(max_workers=6) as executor:
            futures = [executor.submit(update, i) for i in range(15)]
            futures += [executor.submit(upload, i) for i in range(15)]
            errors = [f.exception() for f in futures if f.exception() is not None]

        assert errors == []
        with database.transaction() as session:
            stmt = (
                select(Device.device_key, func.count(Device.id))
                .where(Device.user_id == user_id)
                .group_by(Device.device_key)
            )
            assert dict(session.execute(stmt).all()) == {"k1": 1, "k2": 1, "k3": 1}
