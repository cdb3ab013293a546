"""
Tests for notification delivery and per-reader read state
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import auth_headers
from crusades.core.errors import NotFound, PermissionDenied
from crusades.core.parties import BROADCAST, NotificationType, UserRecipient
from crusades.models import Notification
from crusades.services.notification_service import NotificationService


def notify(db, recipient, title="Hello"):
    return NotificationService.notify(db, recipient, NotificationType.SYSTEM, title, "Message body")


class TestMarkAllRead:
    def test_personal_and_broadcast_for_one_reader_only(self, db_session, make_user):
        reader, bystander = make_user(), make_user()
        for i in range(3):
            notify(db_session, UserRecipient(reader.id), f"Personal {i}")
        for i in range(2):
            notify(db_session, BROADCAST, f"Broadcast {i}")
        notify(db_session, UserRecipient(bystander.id), "Not for reader")

        assert NotificationService.unread_count(db_session, reader.id) == 5
        assert NotificationService.unread_count(db_session, bystander.id) == 3

        marked = NotificationService.mark_all_read(db_session, reader.id)

        assert marked == 5
        assert NotificationService.unread_count(db_session, reader.id) == 0
        assert NotificationService.unread_count(db_session, bystander.id) == 3
        items, total, unread = NotificationService.list_for_user(db_session, reader.id)
        assert total == 5
        assert unread == 0
        assert all(item["read"] for item in items)

    def test_second_call_marks_nothing(self, db_session, make_user):
        reader = make_user()
        notify(db_session, BROADCAST)
        NotificationService.mark_all_read(db_session, reader.id)

        assert NotificationService.mark_all_read(db_session, reader.id) == 0


class TestMarkRead:
    def test_broadcast_read_is_per_reader(self, db_session, make_user):
        first, second = make_user(), make_user()
        notification = notify(db_session, BROADCAST)

        NotificationService.mark_read(db_session, first.id, notification.id)
        NotificationService.mark_read(db_session, first.id, notification.id)

        assert notification.read_by == [first.id]
        assert NotificationService.unread_count(db_session, second.id) == 1

    def test_someone_elses_notification(self, db_session, make_user):
        owner, other = make_user(), make_user()
        notification = notify(db_session, UserRecipient(owner.id))

        with pytest.raises(PermissionDenied):
            NotificationService.mark_read(db_session, other.id, notification.id)

    def test_unknown_notification(self, db_session, make_user):
        with pytest.raises(NotFound):
            NotificationService.mark_read(db_session, make_user().id, "missing")


class TestDelivery:
    def test_storage_failure_is_swallowed(self, db_session, monkeypatch):
        def broken_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db_session, "commit", broken_commit)

        assert notify(db_session, BROADCAST) is None

    def test_listing_newest_first_with_pagination(self, db_session, make_user):
        reader = make_user()
        for i in range(3):
            notify(db_session, UserRecipient(reader.id), f"N{i}")

        items, total, _ = NotificationService.list_for_user(db_session, reader.id, page=1, limit=2)

        assert total == 3
        assert len(items) == 2


class TestNotificationApi:
    def test_list_and_read_all(self, client, db_session, make_user):
        reader = make_user()
        notify(db_session, UserRecipient(reader.id))
        notify(db_session, BROADCAST)
        headers = auth_headers(reader)

        before = client.get("/api/v1/notifications", headers=headers).json()["data"]
        client.post("/api/v1/notifications/read-all", headers=headers)
        after = client.get("/api/v1/notifications", headers=headers).json()["data"]

        assert before["unread_count"] == 2
        assert before["pagination"]["total"] == 2
        assert after["unread_count"] == 0

    def test_read_requires_id(self, client, make_user):
        response = client.post("/api/v1/notifications/read", json={}, headers=auth_headers(make_user()))

        assert response.status_code == 422
        assert response.json()["errors"] == {"notification_id": "Notification ID is required"}

    def test_read_one(self, client, db_session, make_user):
        reader = make_user()
        notification = notify(db_session, UserRecipient(reader.id))

        response = client.post(
            "/api/v1/notifications/read",
            json={"notification_id": notification.id},
            headers=auth_headers(reader),
        )

        assert response.status_code == 200
        assert NotificationService.unread_count(db_session, reader.id) == 0
