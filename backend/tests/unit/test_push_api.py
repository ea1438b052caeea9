"""
Integration tests for push API endpoints.

Tests send-push fan-out status codes, the VAPID key endpoint and the
authenticated subscribe/unsubscribe endpoints.
"""

from unittest.mock import patch

import pytest

from backend.src.config.settings import get_settings
from backend.src.models.push_subscription import PushSubscription
from backend.src.services.push_service import PushGoneError
from backend.tests.conftest import OTHER_USER_ID, TEST_USER_ID, build_settings


SEND_PUSH = "backend.src.services.push_service.PushService._send_push"


@pytest.fixture
def override_settings():
    """Swap the settings the app sees for the rest of the test."""
    from backend.src.main import app

    def _override(**values):
        app.dependency_overrides[get_settings] = lambda: build_settings(**values)
    return _override


# ============================================================================
# Test: POST /send-push
# ============================================================================


class TestSendPushEndpoint:
    """Tests for POST /api/send-push."""

    @patch(SEND_PUSH)
    def test_sends_to_all_devices(self, mock_send, test_client, create_subscription):
        create_subscription(user_id=TEST_USER_ID)
        create_subscription(user_id=TEST_USER_ID)

        response = test_client.post(
            "/api/send-push",
            json={"title": "Hi", "userIds": [TEST_USER_ID, OTHER_USER_ID]},
        )

        assert response.status_code == 200
        assert response.json() == {"sent": 2}

    @patch(SEND_PUSH)
    def test_single_user_id(self, mock_send, test_client, create_subscription):
        create_subscription(user_id=TEST_USER_ID)
        response = test_client.post("/api/send-push", json={"title": "Hi", "userId": TEST_USER_ID})
        assert response.json() == {"sent": 1}

    @patch(SEND_PUSH)
    def test_no_subscriptions(self, mock_send, test_client):
        response = test_client.post("/api/send-push", json={"title": "Hi", "userIds": [TEST_USER_ID]})
        assert response.status_code == 200
        assert response.json() == {"sent": 0}
        mock_send.assert_not_called()

    def test_gone_subscription_is_deleted(self, test_client, create_subscription, test_db_session):
        sub = create_subscription()
        gone = PushGoneError(sub.endpoint, 410)

        with patch(SEND_PUSH, side_effect=gone):
            response = test_client.post(
                "/api/send-push", json={"title": "Hi", "userIds": [TEST_USER_ID]}
            )

        assert response.json() == {"sent": 0}
        assert test_db_session.query(PushSubscription).count() == 0

    @pytest.mark.parametrize("body", [
        {"userIds": [TEST_USER_ID]},
        {"title": "Hi"},
        {"title": "Hi", "userIds": []},
    ])
    def test_missing_input(self, test_client, body):
        response = test_client.post("/api/send-push", json=body)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_configuration(self, test_client, override_settings):
        """Missing VAPID settings answer 500 even when the input is also missing."""
        override_settings(VAPID_PRIVATE_KEY="")
        response = test_client.post("/api/send-push", json={})
        assert response.status_code == 500
        assert "VAPID_PRIVATE_KEY" in response.json()["error"]

    def test_malformed_subject(self, test_client, override_settings):
        override_settings(VAPID_SUBJECT="push@roadmap.test")
        response = test_client.post(
            "/api/send-push", json={"title": "Hi", "userIds": [TEST_USER_ID]}
        )
        assert response.status_code == 500
        assert "mailto: or https:" in response.json()["error"]

    def test_unexpected_error(self, test_client):
        with patch(
            "backend.src.services.push_service.PushService.dispatch",
            side_effect=RuntimeError("boom"),
        ):
            response = test_client.post(
                "/api/send-push", json={"title": "Hi", "userIds": [TEST_USER_ID]}
            )
        assert response.status_code == 500
        assert response.json() == {"error": "boom"}


# ============================================================================
# Test: GET /push/vapid-key
# ============================================================================


class TestVapidKeyEndpoint:
    """Tests for GET /api/push/vapid-key."""

    def test_returns_public_key(self, test_client, test_settings):
        response = test_client.get("/api/push/vapid-key")
        assert response.status_code == 200
        assert response.json() == {"vapid_public_key": test_settings.vapid_public_key}

    def test_not_configured(self, test_client, override_settings):
        override_settings(VAPID_PUBLIC_KEY="")
        response = test_client.get("/api/push/vapid-key")
        assert response.status_code == 503

    def test_malformed_subject_is_not_configured(self, test_client, override_settings):
        override_settings(VAPID_SUBJECT="push@roadmap.test")
        response = test_client.get("/api/push/vapid-key")
        assert response.status_code == 503


# ============================================================================
# Test: /push/subscribe
# ============================================================================


class TestSubscribeEndpoint:
    """Tests for POST and DELETE /api/push/subscribe."""

    BODY = {
        "endpoint": "https://push.example.com/device",
        "keys": {"p256dh": "p256dh-key", "auth": "auth-key"},
    }

    def test_subscribe(self, test_client, auth_headers, test_db_session):
        response = test_client.post("/api/push/subscribe", json=self.BODY, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["endpoint"] == self.BODY["endpoint"]
        sub = test_db_session.query(PushSubscription).one()
        assert sub.user_id == TEST_USER_ID

    def test_resubscribe_replaces(self, test_client, auth_headers, test_db_session):
        test_client.post("/api/push/subscribe", json=self.BODY, headers=auth_headers)
        body = {**self.BODY, "keys": {"p256dh": "new-key", "auth": "new-auth"}}
        test_client.post("/api/push/subscribe", json=body, headers=auth_headers)

        rows = test_db_session.query(PushSubscription).all()
        assert len(rows) == 1
        assert rows[0].p256dh == "new-key"

    def test_rejects_http_endpoint(self, test_client, auth_headers):
        body = {**self.BODY, "endpoint": "http://push.example.com/device"}
        response = test_client.post("/api/push/subscribe", json=body, headers=auth_headers)
        assert response.status_code == 422

    def test_requires_auth(self, test_client):
        response = test_client.post("/api/push/subscribe", json=self.BODY)
        assert response.status_code == 401

    def test_unsubscribe(self, test_client, auth_headers, test_db_session):
        test_client.post("/api/push/subscribe", json=self.BODY, headers=auth_headers)

        response = test_client.request(
            "DELETE",
            "/api/push/subscribe",
            json={"endpoint": self.BODY["endpoint"]},
            headers=auth_headers,
        )

        assert response.status_code == 204
        assert test_db_session.query(PushSubscription).count() == 0

    def test_unsubscribe_missing_is_ok(self, test_client, auth_headers):
        response = test_client.request(
            "DELETE",
            "/api/push/subscribe",
            json={"endpoint": "https://push.example.com/unknown"},
            headers=auth_headers,
        )
        assert response.status_code == 204
