"""
Tests for sign-up, login, password reset, KingsChat login and profile
"""

from datetime import datetime, timedelta

import httpx
import pytest

from conftest import PASSWORD, auth_headers
from crusades.core.config import settings
from crusades.core.errors import AuthenticationError, Conflict, ValidationFailed
from crusades.models import Notification, PasswordReset, User
from crusades.services.account_service import AccountService, kingschat_callback_page
from crusades.services.token_service import token_service
from crusades.utils.security import verify_password

SIGNUP = {
    "full_name": "Chinedu Okafor",
    "email": "Chinedu@Example.com",
    "password": "secret123",
    "country": "Nigeria",
    "phone": "+2348031234567",
}


class TestRegister:
    def test_creates_user_token_and_welcome(self, db_session):
        data = AccountService.register(db_session, dict(SIGNUP))

        assert data["user"]["email"] == "chinedu@example.com"
        assert "password" not in data["user"]
        assert token_service.verify(data["token"]).user_id == data["user"]["id"]
        assert data["expires_in"] == token_service.expires_in()
        notice = db_session.query(Notification).one()
        assert notice.title == "Welcome to Rhapsody Crusades!"

    def test_duplicate_email_any_case(self, db_session):
        AccountService.register(db_session, dict(SIGNUP))

        with pytest.raises(Conflict) as exc:
            AccountService.register(db_session, {**SIGNUP, "email": "CHINEDU@example.com"})
        assert exc.value.message == "Email already registered"

    def test_field_errors(self, db_session):
        with pytest.raises(ValidationFailed) as exc:
            AccountService.register(db_session, {"full_name": "C", "email": "bad", "password": "123", "phone": "12"})

        assert exc.value.errors == {
            "full_name": "Full name must be at least 2 characters",
            "email": "Invalid email format",
            "password": "Password must be at least 6 characters",
            "country": "Country is required",
            "phone": "Invalid phone number",
        }

    def test_register_api(self, client):
        response = client.post("/api/v1/auth/register", json=SIGNUP)

        assert response.status_code == 201
        assert response.json()["message"] == "Registration successful"


class TestLogin:
    def test_same_error_for_unknown_email_and_bad_password(self, client, make_user):
        make_user(email="known@example.com")

        unknown = client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
        wrong = client.post("/api/v1/auth/login", json={"email": "known@example.com", "password": "wrong-pass"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"success": False, "message": "Invalid email or password"}

    def test_login_is_case_insensitive(self, db_session, make_user):
        user = make_user(email="known@example.com")

        data = AccountService.login(db_session, {"email": "Known@Example.com", "password": PASSWORD})

        assert data["user"]["id"] == user.id


class TestPasswordReset:
    def test_same_reply_for_unknown_account(self, db_session, make_user):
        make_user(email="known@example.com")

        known = AccountService.forgot_password(db_session, {"email": "known@example.com"})
        unknown = AccountService.forgot_password(db_session, {"email": "ghost@example.com"})

        assert known == unknown == {"message": "If an account exists with this email, a reset link has been sent."}

    def test_new_request_supersedes_old_token(self, db_session, make_user):
        make_user(email="known@example.com")
        AccountService.forgot_password(db_session, {"email": "known@example.com"})
        first = db_session.query(PasswordReset).one().token

        AccountService.forgot_password(db_session, {"email": "known@example.com"})

        tokens = [r.token for r in db_session.query(PasswordReset)]
        assert len(tokens) == 1
        assert tokens[0] != first
        assert len(tokens[0]) == 64

    def test_reset_consumes_token(self, db_session, make_user):
        user = make_user(email="known@example.com")
        AccountService.forgot_password(db_session, {"email": "known@example.com"})
        token = db_session.query(PasswordReset).one().token
        payload = {"token": token, "password": "brand-new", "password_confirmation": "brand-new"}

        AccountService.reset_password(db_session, payload)

        db_session.refresh(user)
        assert verify_password("brand-new", user.password)
        with pytest.raises(Conflict):
            AccountService.reset_password(db_session, payload)

    def test_expired_token(self, db_session, make_user):
        make_user(email="known@example.com")
        issued = datetime.utcnow() - timedelta(hours=2)
        AccountService.forgot_password(db_session, {"email": "known@example.com"}, now=issued)
        token = db_session.query(PasswordReset).one().token

        with pytest.raises(Conflict) as exc:
            AccountService.reset_password(
                db_session, {"token": token, "password": "brand-new", "password_confirmation": "brand-new"}
            )
        assert exc.value.message == "Invalid or expired reset token"

    def test_confirmation_must_match(self, db_session):
        with pytest.raises(ValidationFailed) as exc:
            AccountService.reset_password(
                db_session, {"token": "t", "password": "brand-new", "password_confirmation": "different"}
            )
        assert exc.value.errors == {"password": "Passwords do not match"}

    def test_token_echo_when_enabled(self, db_session, make_user, monkeypatch):
        monkeypatch.setattr(settings, "RETURN_RESET_TOKEN", True)
        make_user(email="known@example.com")

        data = AccountService.forgot_password(db_session, {"email": "known@example.com"})

        assert data["reset_token"] == db_session.query(PasswordReset).one().token


def kingschat_transport(profile, status_code=200):
    def handler(request):
        assert request.headers["Authorization"] == "Bearer kc-token"
        return httpx.Response(status_code, json=profile)

    return httpx.MockTransport(handler)


class TestKingsChat:
    def test_first_login_creates_user(self, db_session):
        profile = {"username": "brother_john", "first_name": "John", "last_name": "Doe"}

        data = AccountService.kingschat_login(
            db_session, {"accessToken": "kc-token"}, transport=kingschat_transport(profile)
        )

        user = db_session.get(User, data["user"]["id"])
        assert user.email == "brother_john@kingschat.user"
        assert user.full_name == "John Doe"
        assert user.country == "Unknown"
        assert db_session.query(Notification).filter(Notification.user_id == user.id).count() == 1

    def test_links_existing_account_by_email(self, db_session, make_user):
        existing = make_user(email="john@example.com")
        profile = {"username": "brother_john", "email": "John@Example.com"}

        data = AccountService.kingschat_login(
            db_session, {"access_token": "kc-token"}, transport=kingschat_transport(profile)
        )

        assert data["user"]["id"] == existing.id
        assert data["user"]["kingschat_username"] == "brother_john"
        assert db_session.query(User).count() == 1

    def test_provider_rejection(self, db_session):
        with pytest.raises(AuthenticationError):
            AccountService.kingschat_login(
                db_session, {"access_token": "kc-token"}, transport=kingschat_transport({}, status_code=401)
            )

    def test_token_required(self, db_session):
        with pytest.raises(ValidationFailed):
            AccountService.kingschat_login(db_session, {})

    def test_callback_page_deep_link(self, client):
        response = client.get("/api/v1/auth/kingschat-callback", params={"accessToken": "abc", "refreshToken": "def"})

        assert response.status_code == 200
        assert "rhapsodycrusades://auth/callback?accessToken=abc&amp;refreshToken=def" in response.text

    def test_callback_page_without_tokens(self):
        assert 'href="rhapsodycrusades://auth/callback"' in kingschat_callback_page(None, None)


class TestProfile:
    def test_update_only_whitelisted_fields(self, db_session, make_user):
        user = make_user(email="keep@example.com")

        data = AccountService.update_profile(db_session, user, {"church": "CE Lekki", "email": "new@example.com"})

        assert data["church"] == "CE Lekki"
        assert data["email"] == "keep@example.com"

    def test_invalid_phone(self, db_session, make_user):
        with pytest.raises(ValidationFailed):
            AccountService.update_profile(db_session, make_user(), {"phone": "123"})

    def test_stats(self, client, db_session, feed, make_user, make_event):
        from crusades.services.registration_service import RegistrationService

        user = make_user()
        make_event(make_user(), event_id=1000)
        RegistrationService.register(db_session, feed, user, 1000)

        response = client.get("/api/v1/user/stats", headers=auth_headers(user))

        assert response.json()["data"] == {
            "events_attended": 0,
            "events_registered": 1,
            "total_registrations": 1,
            "testimonies": 0,
            "approved_testimonies": 0,
        }

    def test_lookup_by_ticket_code(self, client, db_session, feed, make_user, make_event):
        from crusades.services.registration_service import RegistrationService

        holder = make_user(full_name="Esther James")
        make_event(make_user(), event_id=1000)
        ticket = RegistrationService.register(db_session, feed, holder, 1000)

        found = client.get("/api/v1/user/lookup", params={"qr_code": ticket["qr_code"]}, headers=auth_headers(holder))
        missing = client.get("/api/v1/user/lookup", params={"qr": "000000000000"}, headers=auth_headers(holder))

        assert found.json()["data"]["full_name"] == "Esther James"
        assert missing.status_code == 404

    def test_required_fields_cannot_be_cleared(self, db_session, make_user):
        user = make_user(full_name="Grace Obi")

        with pytest.raises(ValidationFailed) as exc:
            AccountService.update_profile(db_session, user, {"full_name": "", "country": None})

        assert exc.value.errors == {"full_name": "Full name is required", "country": "Country is required"}
        db_session.refresh(user)
        assert (user.full_name, user.country) == ("Grace Obi", "Nigeria")

    def test_null_country_via_api(self, client, make_user):
        user = make_user()

        response = client.put("/api/v1/user/profile", json={"country": None}, headers=auth_headers(user))

        assert response.status_code == 422
        assert response.json()["errors"] == {"country": "Country is required"}
