"""
Tests for event registration and ticket views
"""

import pytest

from conftest import auth_headers, iso_day
from crusades.core.errors import Conflict, NotFound, PermissionDenied
from crusades.models import Notification, Ticket
from crusades.services.registration_service import RegistrationService


class TestRegister:
    def test_ticket_fields(self, db_session, feed, make_user, make_event):
        user = make_user()
        make_event(make_user(), event_id=1000)

        ticket = RegistrationService.register(db_session, feed, user, 1000, today="2026-02-01")

        assert ticket["status"] == "active"
        assert ticket["registration_date"] == "2026-02-01"
        assert len(ticket["qr_code"]) == 12
        assert all(c in "0123456789abcdef" for c in ticket["qr_code"])
        assert ticket["event"]["id"] == 1000

    def test_second_registration_conflicts(self, db_session, feed, make_user, make_event):
        user = make_user()
        make_event(make_user(), event_id=1000)
        RegistrationService.register(db_session, feed, user, 1000)

        with pytest.raises(Conflict) as exc:
            RegistrationService.register(db_session, feed, user, 1000)

        assert exc.value.message == "You are already registered for this event"
        assert db_session.query(Ticket).filter(Ticket.user_id == user.id, Ticket.event_id == 1000).count() == 1

    def test_capacity_nth_succeeds_next_fails(self, db_session, feed, make_user, make_event):
        make_event(make_user(), event_id=1000, capacity=3)
        attendees = [make_user() for _ in range(4)]

        for user in attendees[:3]:
            RegistrationService.register(db_session, feed, user, 1000)

        with pytest.raises(Conflict) as exc:
            RegistrationService.register(db_session, feed, attendees[3], 1000)
        assert exc.value.message == "This event has reached its capacity"

    def test_unknown_event(self, db_session, feed, make_user):
        with pytest.raises(NotFound):
            RegistrationService.register(db_session, feed, make_user(), 999)

    def test_code_collision_is_retried(self, db_session, feed, make_user, make_event):
        make_event(make_user(), event_id=1000)
        make_event(make_user(), event_id=1001)
        codes = iter(["aaaaaaaaaaaa", "aaaaaaaaaaaa", "bbbbbbbbbbbb"])
        generate = lambda: next(codes)

        first = RegistrationService.register(db_session, feed, make_user(), 1000, generate=generate)
        second = RegistrationService.register(db_session, feed, make_user(), 1001, generate=generate)

        assert first["qr_code"] == "aaaaaaaaaaaa"
        assert second["qr_code"] == "bbbbbbbbbbbb"

    def test_external_event_is_uncapped_and_has_no_owner_notice(self, db_session, feed, feed_items, make_user):
        feed_items.append({"id": 12, "title": "Feed Crusade", "date": iso_day(4)})
        user = make_user()

        ticket = RegistrationService.register(db_session, feed, user, 12)

        assert ticket["event"] == {"id": 12, "title": "Feed Crusade", "external": True}
        titles = [n.title for n in db_session.query(Notification)]
        assert titles == ["Registration Confirmed!"]

    def test_registrant_and_owner_notified(self, db_session, feed, make_user, make_event):
        owner, user = make_user(), make_user(full_name="Ada Eze")
        make_event(owner, event_id=1000)

        RegistrationService.register(db_session, feed, user, 1000)

        by_recipient = {n.user_id: n for n in db_session.query(Notification)}
        assert by_recipient[user.id].title == "Registration Confirmed!"
        assert by_recipient[owner.id].title == "New Registration"
        assert "Ada Eze" in by_recipient[owner.id].message

    def test_owner_registering_for_own_event_gets_one_notice(self, db_session, feed, make_user, make_event):
        owner = make_user()
        make_event(owner, event_id=1000)

        RegistrationService.register(db_session, feed, owner, 1000)

        assert db_session.query(Notification).count() == 1


class TestCancel:
    def test_cancel_is_terminal(self, db_session, feed, make_user, make_event):
        user = make_user()
        make_event(make_user(), event_id=1000)
        data = RegistrationService.register(db_session, feed, user, 1000)
        ticket = db_session.get(Ticket, data["id"])

        RegistrationService.cancel_ticket(db_session, ticket)
        assert ticket.status == "cancelled"

        with pytest.raises(Conflict):
            RegistrationService.cancel_ticket(db_session, ticket)


class TestTicketViews:
    def test_register_through_api(self, client, make_user, make_event):
        make_event(make_user(), event_id=1000)
        headers = auth_headers(make_user())

        first = client.post("/api/v1/events/1000/register", headers=headers)
        second = client.post("/api/v1/events/1000/register", headers=headers)

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json() == {"success": False, "message": "You are already registered for this event"}

    def test_ticket_list_includes_external_events(self, client, db_session, feed, feed_items, make_user, make_event):
        user = make_user()
        make_event(make_user(), event_id=1000, title="Local")
        feed_items.append({"id": 3, "title": "Feed", "date": iso_day(4)})
        RegistrationService.register(db_session, feed, user, 1000)
        RegistrationService.register(db_session, feed, user, 3)

        response = client.get("/api/v1/user/tickets", headers=auth_headers(user))

        titles = sorted(t["event"]["title"] for t in response.json()["data"])
        assert titles == ["Feed", "Local"]

    def test_other_users_ticket_is_forbidden(self, db_session, feed, make_user, make_event):
        holder, other = make_user(), make_user()
        make_event(make_user(), event_id=1000)
        ticket = RegistrationService.register(db_session, feed, holder, 1000)

        with pytest.raises(PermissionDenied):
            RegistrationService.get_ticket(db_session, ticket["id"], other)

    def test_verify_mode_by_code(self, db_session, feed, make_user, make_event):
        creator, holder = make_user(), make_user(full_name="Tunde Bello")
        make_event(creator, event_id=1000)
        ticket = RegistrationService.register(db_session, feed, holder, 1000)

        data = RegistrationService.get_ticket(db_session, ticket["qr_code"], creator, verify=True)

        assert data["holder_name"] == "Tunde Bello"
        assert data["can_check_in"] is True

    def test_verify_mode_requires_token(self, client, db_session, feed, make_user, make_event):
        make_event(make_user(), event_id=1000)
        ticket = RegistrationService.register(db_session, feed, make_user(), 1000)

        response = client.get(f"/api/v1/user/tickets/{ticket['qr_code']}", params={"verify": "true"})

        assert response.status_code == 401

    def test_ticket_qr_png(self, client, db_session, feed, make_user, make_event):
        holder = make_user()
        make_event(make_user(), event_id=1000)
        ticket = RegistrationService.register(db_session, feed, holder, 1000)

        response = client.get(f"/api/v1/user/tickets/{ticket['id']}/qr.png", headers=auth_headers(holder))

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")
