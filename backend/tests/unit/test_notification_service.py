"""
Unit tests for NotificationService.

Tests event recording, enriched listing, the grouped feed with read
flipping, unread count, and receiver-scoped deletion.
"""

from datetime import datetime, timedelta

import pytest
from freezegun import freeze_time

from backend.src.models.notification import Notification
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.notification_service import NotificationService
from backend.tests.conftest import OTHER_USER_ID, TEST_USER_ID


THIRD_USER_ID = "33333333-3333-4333-8333-333333333333"
CARD_ID = "cccccccc-cccc-4ccc-8ccc-cccccccccccc"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def notification_service(test_db_session):
    """Create a NotificationService instance."""
    return NotificationService(db=test_db_session)


def _ago(seconds):
    return datetime.utcnow() - timedelta(seconds=seconds)


# ============================================================================
# Test: record_event
# ============================================================================


class TestRecordEvent:
    """Tests for NotificationService.record_event."""

    def test_creates_notification_record(self, notification_service):
        """Should create an unread event row."""
        notification = notification_service.record_event(
            receiver_id=TEST_USER_ID,
            actor_id=OTHER_USER_ID,
            type="like",
            card_id=CARD_ID,
        )
        assert notification.id is not None
        assert len(notification.id) == 36
        assert notification.receiver_id == TEST_USER_ID
        assert notification.actor_id == OTHER_USER_ID
        assert notification.card_id == CARD_ID
        assert notification.is_read is False

    def test_skips_self_notification(self, notification_service, test_db_session):
        """Should not record an event the receiver caused themselves."""
        result = notification_service.record_event(
            receiver_id=TEST_USER_ID,
            actor_id=TEST_USER_ID,
            type="like",
            card_id=CARD_ID,
        )
        assert result is None
        assert test_db_session.query(Notification).count() == 0

    def test_allows_system_event_without_actor(self, notification_service):
        notification = notification_service.record_event(
            receiver_id=TEST_USER_ID, actor_id=None, type="follow"
        )
        assert notification is not None
        assert notification.actor_id is None

    def test_preserves_unknown_type(self, notification_service):
        notification = notification_service.record_event(
            receiver_id=TEST_USER_ID, actor_id=OTHER_USER_ID, type="mention"
        )
        assert notification.type == "mention"

    def test_rejects_missing_receiver(self, notification_service):
        with pytest.raises(ValidationError):
            notification_service.record_event(
                receiver_id="", actor_id=OTHER_USER_ID, type="like"
            )

    def test_ids_are_unique(self, notification_service):
        ids = {
            notification_service.record_event(
                receiver_id=TEST_USER_ID, actor_id=OTHER_USER_ID, type="like"
            ).id
            for _ in range(5)
        }
        assert len(ids) == 5


# ============================================================================
# Test: listing
# ============================================================================


class TestListRecent:
    """Tests for list_recent and list_enriched."""

    def test_newest_first_and_bounded(self, notification_service, create_notification):
        for i in range(5):
            create_notification(created_at=_ago(100 - i))
        rows = notification_service.list_recent(TEST_USER_ID, limit=3)
        assert len(rows) == 3
        assert rows[0].created_at >= rows[1].created_at >= rows[2].created_at

    def test_only_receivers_rows(self, notification_service, create_notification):
        create_notification(receiver_id=TEST_USER_ID)
        create_notification(receiver_id=THIRD_USER_ID)
        rows = notification_service.list_recent(TEST_USER_ID)
        assert len(rows) == 1
        assert rows[0].receiver_id == TEST_USER_ID

    def test_enriches_actor_and_card(
        self, notification_service, create_notification, create_profile, create_card
    ):
        create_profile(OTHER_USER_ID, "bob", avatar="https://cdn.test/bob.png")
        create_card(CARD_ID, "Learn Go")
        create_notification(actor_id=OTHER_USER_ID, card_id=CARD_ID)

        events = notification_service.list_enriched(TEST_USER_ID)

        assert len(events) == 1
        assert events[0].actor.username == "bob"
        assert events[0].actor.avatar == "https://cdn.test/bob.png"
        assert events[0].card_title == "Learn Go"

    def test_missing_profile_and_card_leave_fields_empty(
        self, notification_service, create_notification
    ):
        create_notification(actor_id=OTHER_USER_ID, card_id=CARD_ID)
        events = notification_service.list_enriched(TEST_USER_ID)
        assert events[0].actor is None
        assert events[0].card_title is None
        assert events[0].card_id == CARD_ID

    def test_empty(self, notification_service):
        assert notification_service.list_enriched(TEST_USER_ID) == []


# ============================================================================
# Test: get_grouped
# ============================================================================


class TestGetGrouped:
    """Tests for NotificationService.get_grouped."""

    def test_groups_and_marks_read(
        self, notification_service, create_notification, create_profile, test_db_session
    ):
        """Groups show pre-load read state; rows are read afterwards."""
        create_profile(OTHER_USER_ID, "bob")
        create_profile(THIRD_USER_ID, "carol")
        create_notification(type="like", card_id=CARD_ID, actor_id=OTHER_USER_ID, created_at=_ago(10))
        create_notification(type="like", card_id=CARD_ID, actor_id=THIRD_USER_ID, created_at=_ago(20))
        create_notification(type="follow", actor_id=THIRD_USER_ID, created_at=_ago(30))

        groups = notification_service.get_grouped(TEST_USER_ID)

        assert [g.key for g in groups] == [f"like::{CARD_ID}", "follow"]
        assert [a.username for a in groups[0].actors] == ["bob", "carol"]
        assert all(g.is_read is False for g in groups)
        assert notification_service.get_unread_count(TEST_USER_ID) == 0

    def test_mark_read_disabled(self, notification_service, create_notification):
        create_notification()
        notification_service.get_grouped(TEST_USER_ID, mark_read=False)
        assert notification_service.get_unread_count(TEST_USER_ID) == 1

    def test_second_load_reads_as_read(self, notification_service, create_notification):
        create_notification(card_id=CARD_ID)
        first = notification_service.get_grouped(TEST_USER_ID)
        second = notification_service.get_grouped(TEST_USER_ID)
        assert first[0].is_read is False
        assert second[0].is_read is True


# ============================================================================
# Test: read state
# ============================================================================


class TestReadState:
    """Tests for unread count and mark_all_as_read."""

    def test_get_unread_count(self, notification_service, create_notification):
        create_notification()
        create_notification()
        create_notification(is_read=True)
        create_notification(receiver_id=THIRD_USER_ID)
        assert notification_service.get_unread_count(TEST_USER_ID) == 2

    def test_marks_unread_as_read(self, notification_service, create_notification):
        create_notification()
        create_notification()
        assert notification_service.mark_all_as_read(TEST_USER_ID) == 2
        assert notification_service.get_unread_count(TEST_USER_ID) == 0

    def test_idempotent(self, notification_service, create_notification):
        create_notification()
        notification_service.mark_all_as_read(TEST_USER_ID)
        assert notification_service.mark_all_as_read(TEST_USER_ID) == 0

    def test_leaves_other_receivers_alone(self, notification_service, create_notification):
        create_notification(receiver_id=THIRD_USER_ID)
        notification_service.mark_all_as_read(TEST_USER_ID)
        assert notification_service.get_unread_count(THIRD_USER_ID) == 1


# ============================================================================
# Test: deletion
# ============================================================================


class TestDeletion:
    """Tests for the delete operations."""

    def test_delete_notification(self, notification_service, create_notification, test_db_session):
        n = create_notification()
        notification_service.delete_notification(TEST_USER_ID, n.id)
        assert test_db_session.query(Notification).count() == 0

    def test_delete_notification_of_other_receiver(self, notification_service, create_notification):
        n = create_notification(receiver_id=THIRD_USER_ID)
        with pytest.raises(NotFoundError):
            notification_service.delete_notification(TEST_USER_ID, n.id)

    def test_delete_missing_notification(self, notification_service):
        with pytest.raises(NotFoundError):
            notification_service.delete_notification(TEST_USER_ID, "missing")

    def test_delete_group(self, notification_service, create_notification, test_db_session):
        a = create_notification()
        b = create_notification()
        keep = create_notification()
        foreign = create_notification(receiver_id=THIRD_USER_ID)

        count = notification_service.delete_notifications(TEST_USER_ID, [a.id, b.id, foreign.id])

        assert count == 2
        remaining = {n.id for n in test_db_session.query(Notification).all()}
        assert remaining == {keep.id, foreign.id}

    def test_delete_group_empty_ids(self, notification_service):
        assert notification_service.delete_notifications(TEST_USER_ID, []) == 0

    def test_delete_all(self, notification_service, create_notification):
        create_notification()
        create_notification(is_read=True)
        create_notification(receiver_id=THIRD_USER_ID)
        assert notification_service.delete_all(TEST_USER_ID) == 2
        assert notification_service.list_recent(THIRD_USER_ID)

    def test_delete_read_only(self, notification_service, create_notification):
        unread = create_notification()
        create_notification(is_read=True)
        assert notification_service.delete_all(TEST_USER_ID, read_only=True) == 1
        assert [n.id for n in notification_service.list_recent(TEST_USER_ID)] == [unread.id]


@freeze_time("2026-03-01 12:00:00")
def test_recorded_event_timestamp_is_utc_now(notification_service):
    notification = notification_service.record_event(
        receiver_id=TEST_USER_ID, actor_id=OTHER_USER_ID, type="follow"
    )
    assert notification.created_at == datetime(2026, 3, 1, 12, 0, 0)
