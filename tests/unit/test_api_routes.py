"""
Tests for FastAPI route endpoints.
"""

from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest
from fastapi.testclient import TestClient

from worktrack.errors import BackendError, EntityNotFoundError, SessionNotActiveError
from worktrack.main import app
from worktrack.models.notification import Notification, Toast, ToastType
from worktrack.portal import get_portal_session

TOKENS = {"access_token": "access-abc", "refresh_token": "refresh-xyz"}


@pytest.fixture
def mock_session(staff_profile):
    session = MagicMock()
    session.active = True
    session.feed = None
    session.sign_in_by_id = AsyncMock(return_value=staff_profile)
    session.sign_out = AsyncMock()
    session.open = AsyncMock(return_value="order-1")
    session.orders = []
    session.notifications = [
        Notification(id="NTF-1", title="New Comment", message="New comment added on ORD-1", order_id="order-1"),
    ]
    session.unread_count = 1
    session.drain_toasts = MagicMock(return_value=[Toast(id="t1", type=ToastType.INFO, message="hi")])
    return session


@pytest.fixture
def client(mock_session):
    app.dependency_overrides[get_portal_session] = lambda: mock_session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==================== HEALTH ====================

class TestHealth:

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "WorkTrack Portal"

    def test_health_reports_queue_depth(self, client, mock_session):
        mock_session.feed = MagicMock(running=True, pending=3)
        with patch("worktrack.main.get_portal_session", return_value=mock_session):
            services = client.get("/health").json()["services"]

        assert services["feed_running"] is True
        assert services["pending_events"] == 3


# ==================== SESSION ====================

class TestSession:

    def test_sign_in(self, client, mock_session):
        response = client.post("/api/session", json={"profile_id": "staff-1", **TOKENS})

        assert response.status_code == 200
        assert response.json()["viewer"]["role"] == "staff"
        mock_session.sign_in_by_id.assert_awaited_once_with("staff-1", "access-abc", "refresh-xyz")

    def test_sign_in_unknown_profile(self, client, mock_session):
        mock_session.sign_in_by_id.side_effect = EntityNotFoundError("Profile nobody not found")
        response = client.post("/api/session", json={"profile_id": "nobody", **TOKENS})
        assert response.status_code == 404

    def test_sign_in_backend_down(self, client, mock_session):
        mock_session.sign_in_by_id.side_effect = BackendError("select profiles", "offline")
        response = client.post("/api/session", json={"profile_id": "staff-1", **TOKENS})
        assert response.status_code == 502

    def test_sign_in_rejected_tokens(self, client, mock_session):
        mock_session.sign_in_by_id.side_effect = BackendError("authenticate", "Invalid JWT")
        response = client.post("/api/session", json={"profile_id": "staff-1", **TOKENS})
        assert response.status_code == 401

    def test_sign_in_requires_tokens(self, client, mock_session):
        response = client.post("/api/session", json={"profile_id": "staff-1"})
        assert response.status_code == 422
        mock_session.sign_in_by_id.assert_not_awaited()

    def test_sign_out(self, client, mock_session):
        response = client.delete("/api/session")
        assert response.status_code == 200
        mock_session.sign_out.assert_awaited_once()


# ==================== NOTIFICATIONS ====================

class TestNotifications:

    def test_list(self, client):
        data = client.get("/api/notifications").json()
        assert data["unread"] == 1
        assert data["notifications"][0]["id"] == "NTF-1"

    def test_unread_count(self, client):
        assert client.get("/api/notifications/unread-count").json() == {"unread": 1}

    def test_mark_all_read(self, client, mock_session):
        response = client.post("/api/notifications/read-all")
        assert response.status_code == 200
        mock_session.mark_all_read.assert_called_once()

    def test_open(self, client, mock_session):
        data = client.post("/api/notifications/NTF-1/open").json()
        assert data == {"notification_id": "NTF-1", "order_id": "order-1"}
        mock_session.open.assert_awaited_once_with("NTF-1")

    def test_requires_session(self, client, mock_session):
        type(mock_session).notifications = PropertyMock(side_effect=SessionNotActiveError("No viewer"))
        response = client.get("/api/notifications")
        assert response.status_code == 401


# ==================== ORDERS & TOASTS ====================

class TestOrdersAndToasts:

    def test_orders(self, client):
        assert client.get("/api/orders").json() == {"orders": []}

    def test_toasts_are_drained(self, client):
        data = client.get("/api/toasts").json()
        assert data["toasts"][0]["message"] == "hi"

    def test_sync_status(self, client, mock_session):
        mock_session.sync_status = MagicMock(return_value={"viewer_id": "staff-1", "pending_events": 2})
        data = client.get("/api/sync/status").json()
        assert data == {"viewer_id": "staff-1", "pending_events": 2}

    def test_sync_status_requires_session(self, client, mock_session):
        mock_session.sync_status = MagicMock(side_effect=SessionNotActiveError("No viewer"))
        assert client.get("/api/sync/status").status_code == 401
