"""Tests for the subscription endpoints."""

from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from podsync.config import Config
from podsync.errors import StorageError
from podsync.web.app import create_app
from podsync.web.errors import register_error_handlers
from podsync.web.subscription_routes import router


@pytest.fixture
def client(database, user_id):
    """Client for the full application with user `alice` registered."""
    app = create_app(Config(), database)
    with TestClient(app) as test_client:
        yield test_client


class TestUploadSubscriptions:
    """Tests for POST /api/2/subscriptions/{username}/{device}.json."""

    def test_upload_and_poll(self, client):
        response = client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"add": ["http://a/feed", "http://b/feed"], "remove": [], "timestamp": 100},
        )

        assert response.status_code == 200
        assert response.json() == {"timestamp": 100, "update_urls": []}

        response = client.get("/api/2/subscriptions/alice/phone.json")
        assert sorted(response.json()) == ["http://a/feed", "http://b/feed"]

    def test_conflicting_change_returns_400(self, client):
        response = client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"add": ["http://a/feed"], "remove": ["http://a/feed"]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "conflicting_change"
        assert "http://a/feed" in response.json()["detail"]

        assert client.get("/api/2/subscriptions/alice/phone.json").json() == []

    def test_invalid_url_reported(self, client):
        response = client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"add": ["javascript:alert(1)"], "timestamp": 100},
        )

        assert response.status_code == 200
        assert response.json()["update_urls"] == [["javascript:alert(1)", ""]]
        assert client.get("/api/2/subscriptions/alice/phone.json").json() == []

    def test_unknown_user_returns_404(self, client):
        response = client.post("/api/2/subscriptions/bob/phone.json", json={"add": ["http://a"]})

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "User 'bob' not found"}

    def test_negative_timestamp_rejected(self, client):
        response = client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"add": ["http://a/feed"], "timestamp": -1},
        )

        assert response.status_code == 422


class TestGetSubscriptions:
    """Tests for GET /api/2/subscriptions/{username}/{device}.json."""

    def test_changes_since(self, client):
        client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"add": ["http://a/feed", "http://b/feed"], "timestamp": 100},
        )
        client.post(
            "/api/2/subscriptions/alice/phone.json",
            json={"remove": ["http://a/feed"], "timestamp": 200},
        )

        with patch("podsync.sync.reconciler.time.time", return_value=1000):
            response = client.get("/api/2/subscriptions/alice/phone.json", params={"since": 150})

        assert response.status_code == 200
        assert response.json() == {"add": [], "remove": ["http://a/feed"], "timestamp": 1000}

    def test_unknown_device_is_empty(self, client):
        response = client.get("/api/2/subscriptions/alice/nowhere.json", params={"since": 0})

        assert response.status_code == 200
        assert response.json()["add"] == []
        assert response.json()["remove"] == []


class TestSimpleSubscriptions:
    """Tests for the /subscriptions endpoints."""

    def test_put_replaces_list(self, client):
        client.put("/subscriptions/alice/phone.json", json=["http://a/feed", "http://b/feed"])

        response = client.put(
            "/subscriptions/alice/phone.json", json=["http://b/feed", "http://c/feed"]
        )

        assert response.status_code == 200
        assert sorted(client.get("/subscriptions/alice/phone.json").json()) == [
            "http://b/feed",
            "http://c/feed",
        ]

    def test_put_reports_rewrites(self, client):
        response = client.put("/subscriptions/alice/phone.json", json=["ftp://x", "http://a/feed"])

        assert response.json()["update_urls"] == [["ftp://x", ""]]

    def test_all_devices(self, client):
        client.put("/subscriptions/alice/phone.json", json=["http://a/feed"])
        client.put("/subscriptions/alice/laptop.json", json=["http://a/feed", "http://b/feed"])

        response = client.get("/subscriptions/alice.json")

        assert response.status_code == 200
        assert response.json() == ["http://a/feed", "http://b/feed"]

    def test_unknown_user(self, client):
        assert client.get("/subscriptions/bob.json").status_code == 404


class TestStorageErrors:
    """Storage failures surface as 500 with the error kind."""

    def test_storage_error_returns_500(self):
        app = FastAPI()
        app.include_router(router)
        register_error_handlers(app)

        accounts = Mock()
        accounts.resolve_user.return_value = 1
        reconciler = Mock()
        reconciler.upload_changes.side_effect = StorageError("Database error: OperationalError")
        app.state.accounts = accounts
        app.state.reconciler = reconciler

        client = TestClient(app)
        response = client.post("/api/2/subscriptions/alice/phone.json", json={"add": ["http://a"]})

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal",
            "detail": "Database error: OperationalError",
        }
