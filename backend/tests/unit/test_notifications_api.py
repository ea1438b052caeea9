"""
Integration tests for notification API endpoints.

Tests the bell list, grouped feed, unread count, mark-all-read, deletion
and event recording endpoints, all scoped to the authenticated user.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from backend.src.models.notification import Notification
from backend.tests.conftest import OTHER_USER_ID, TEST_USER_ID, build_settings


THIRD_USER_ID = "33333333-3333-4333-8333-333333333333"
CARD_ID = "cccccccc-cccc-4ccc-8ccc-cccccccccccc"
SCHEDULE_DISPATCH = "backend.src.services.push_service.PushService.schedule_dispatch"


# ============================================================================
# Test: authentication
# ============================================================================


class TestAuthentication:
    """Every notification endpoint requires a valid access token."""

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/notifications"),
        ("GET", "/api/notifications/grouped"),
        ("GET", "/api/notifications/unread-count"),
        ("POST", "/api/notifications/mark-all-read"),
        ("DELETE", "/api/notifications"),
    ])
    def test_requires_token(self, test_client, method, path):
        response = test_client.request(method, path)
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_rejects_token_with_wrong_secret(self, test_client, make_token):
        token = make_token(secret="some-other-secret-of-sufficient-length")
        response = test_client.get(
            "/api/notifications", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    def test_rejects_expired_token(self, test_client, make_token):
        token = make_token(expires_in=timedelta(minutes=-5))
        response = test_client.get(
            "/api/notifications", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


# ============================================================================
# Test: GET /notifications
# ============================================================================


class TestListEndpoint:
    """Tests for GET /api/notifications."""

    def test_lists_enriched_notifications(
        self, test_client, auth_headers, create_notification, create_profile, create_card
    ):
        create_profile(OTHER_USER_ID, "bob")
        create_card(CARD_ID, "Learn Go")
        create_notification(card_id=CARD_ID)
        create_notification(receiver_id=THIRD_USER_ID)

        response = test_client.get("/api/notifications", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["unread_count"] == 1
        assert len(data["items"]) == 1
        item = data["items"][0]
        assert item["actor"]["username"] == "bob"
        assert item["card_title"] == "Learn Go"
        assert item["created_at"].endswith("Z")

    def test_respects_limit(self, test_client, auth_headers, create_notification):
        for _ in range(5):
            create_notification()
        response = test_client.get("/api/notifications?limit=2", headers=auth_headers)
        assert len(response.json()["items"]) == 2

    def test_rejects_limit_over_feed_size(self, test_client, auth_headers):
        response = test_client.get("/api/notifications?limit=101", headers=auth_headers)
        assert response.status_code == 422


# ============================================================================
# Test: GET /notifications/grouped
# ============================================================================


class TestGroupedEndpoint:
    """Tests for GET /api/notifications/grouped."""

    def test_groups_and_marks_read(
        self, test_client, auth_headers, create_notification, create_profile, create_card
    ):
        now = datetime.utcnow()
        create_profile(OTHER_USER_ID, "bob")
        create_profile(THIRD_USER_ID, "carol")
        create_card(CARD_ID, "Learn Go")
        create_notification(card_id=CARD_ID, actor_id=OTHER_USER_ID, created_at=now)
        create_notification(card_id=CARD_ID, actor_id=THIRD_USER_ID, created_at=now - timedelta(minutes=1))

        response = test_client.get("/api/notifications/grouped?lang=en", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["locale"] == "en"
        assert len(data["groups"]) == 1
        group = data["groups"][0]
        assert group["key"] == f"like::{CARD_ID}"
        assert group["count"] == 2
        assert group["is_read"] is False
        assert group["text"] == "bob and 1 other liked “Learn Go”"
        assert group["href"] == f"/card/{CARD_ID}"

        unread = test_client.get("/api/notifications/unread-count", headers=auth_headers)
        assert unread.json()["unread_count"] == 0

    def test_locale_from_accept_language(self, test_client, auth_headers, create_notification):
        create_notification(type="follow")
        response = test_client.get(
            "/api/notifications/grouped",
            headers={**auth_headers, "Accept-Language": "ru-RU,ru;q=0.9"},
        )
        assert response.json()["locale"] == "ru"

    def test_without_marking_read(self, test_client, auth_headers, create_notification):
        create_notification()
        test_client.get("/api/notifications/grouped?mark_read=false", headers=auth_headers)
        unread = test_client.get("/api/notifications/unread-count", headers=auth_headers)
        assert unread.json()["unread_count"] == 1


# ============================================================================
# Test: read state and deletion
# ============================================================================


class TestReadStateEndpoints:
    """Tests for unread-count and mark-all-read."""

    def test_unread_count(self, test_client, auth_headers, create_notification):
        create_notification()
        create_notification(is_read=True)
        response = test_client.get("/api/notifications/unread-count", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"unread_count": 1}

    def test_mark_all_read(self, test_client, auth_headers, create_notification):
        create_notification()
        create_notification()
        response = test_client.post("/api/notifications/mark-all-read", headers=auth_headers)
        assert response.json() == {"updated_count": 2}


class TestDeletionEndpoints:
    """Tests for the delete endpoints."""

    def test_delete_one(self, test_client, auth_headers, create_notification, test_db_session):
        n = create_notification()
        response = test_client.delete(f"/api/notifications/{n.id}", headers=auth_headers)
        assert response.status_code == 204
        assert test_db_session.query(Notification).count() == 0

    def test_delete_someone_elses(self, test_client, auth_headers, create_notification):
        n = create_notification(receiver_id=THIRD_USER_ID)
        response = test_client.delete(f"/api/notifications/{n.id}", headers=auth_headers)
        assert response.status_code == 404

    def test_delete_group(self, test_client, auth_headers, create_notification):
        a = create_notification()
        b = create_notification()
        response = test_client.post(
            "/api/notifications/delete", json={"ids": [a.id, b.id]}, headers=auth_headers
        )
        assert response.json() == {"deleted_count": 2}

    def test_delete_group_requires_ids(self, test_client, auth_headers):
        response = test_client.post("/api/notifications/delete", json={"ids": []}, headers=auth_headers)
        assert response.status_code == 422

    def test_clear_read_only(self, test_client, auth_headers, create_notification):
        create_notification()
        create_notification(is_read=True)
        response = test_client.delete("/api/notifications?read_only=true", headers=auth_headers)
        assert response.json() == {"deleted_count": 1}


# ============================================================================
# Test: POST /notifications/events
# ============================================================================


class TestRecordEventEndpoint:
    """Tests for POST /api/notifications/events."""

    @patch(SCHEDULE_DISPATCH)
    def test_records_event_with_caller_as_actor(
        self, mock_schedule, test_client, auth_headers, test_db_session
    ):
        response = test_client.post(
            "/api/notifications/events",
            json={"type": "like", "receiver_id": OTHER_USER_ID, "card_id": CARD_ID},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["recorded"] is True
        assert data["push_scheduled"] is False
        mock_schedule.assert_not_called()

        row = test_db_session.query(Notification).one()
        assert row.actor_id == TEST_USER_ID
        assert row.receiver_id == OTHER_USER_ID

    @patch(SCHEDULE_DISPATCH)
    def test_self_event_not_recorded(self, mock_schedule, test_client, auth_headers, test_db_session):
        response = test_client.post(
            "/api/notifications/events",
            json={"type": "like", "receiver_id": TEST_USER_ID, "title": "Hi"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["recorded"] is False
        assert test_db_session.query(Notification).count() == 0
        mock_schedule.assert_not_called()

    @patch(SCHEDULE_DISPATCH)
    def test_schedules_push_to_receiver(self, mock_schedule, test_client, auth_headers):
        response = test_client.post(
            "/api/notifications/events",
            json={
                "type": "follow",
                "receiver_id": OTHER_USER_ID,
                "title": "New follower",
                "body": "alice started following you",
                "url": "/profile",
            },
            headers=auth_headers,
        )

        assert response.json()["push_scheduled"] is True
        message = mock_schedule.call_args.args[1]
        assert message.title == "New follower"
        assert message.user_ids == [OTHER_USER_ID]
        assert message.url == "/profile"

    @patch(SCHEDULE_DISPATCH)
    def test_skips_push_when_not_configured(self, mock_schedule, test_client, auth_headers):
        from backend.src.config.settings import get_settings
        from backend.src.main import app

        app.dependency_overrides[get_settings] = lambda: build_settings(VAPID_PRIVATE_KEY="")

        response = test_client.post(
            "/api/notifications/events",
            json={"type": "follow", "receiver_id": OTHER_USER_ID, "title": "New follower"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["push_scheduled"] is False
        mock_schedule.assert_not_called()
