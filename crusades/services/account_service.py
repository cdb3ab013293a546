"""
User accounts: sign-up, login, password reset, KingsChat login and profile
"""

import logging
from datetime import datetime, timedelta
from html import escape
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crusades.core.config import settings
from crusades.core.errors import AuthenticationError, Conflict, NotFound, ValidationFailed
from crusades.core.parties import NotificationType, TestimonyStatus, TicketStatus, UserRecipient
from crusades.models import PasswordReset, Testimony, Ticket, User
from crusades.services.notification_service import NotificationService
from crusades.services.repositories import TicketRepo, UserRepo
from crusades.services.serializers import user_summary, user_to_dict
from crusades.services.token_service import TokenIdentity, TokenService, token_service
from crusades.utils.security import (
    generate_random_password,
    generate_reset_token,
    hash_password,
    verify_password,
)
from crusades.utils.validator import validate

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account exists with this email, a reset link has been sent."
WELCOME_TITLE = "Welcome to Rhapsody Crusades!"
PROFILE_FIELDS = ("full_name", "phone", "country", "city", "zone", "church", "group", "kingschat_username", "avatar")


def session_payload(user: User, tokens: TokenService) -> Dict[str, Any]:
    """Token plus user, as returned by every login flavour"""
    return {
        "user": user_to_dict(user),
        "token": tokens.issue(TokenIdentity(user.id, user.email)),
        "expires_in": tokens.expires_in(),
    }


def _welcome(db: Session, user: User, via: str = ""):
    NotificationService.notify(
        db,
        UserRecipient(user.id),
        NotificationType.SYSTEM,
        WELCOME_TITLE,
        f"Thank you for joining us{via}. Explore upcoming crusades and register for events.",
    )


class AccountService:
    """Account lifecycle for app users"""

    @staticmethod
    def register(db: Session, payload: Dict[str, Any], tokens: TokenService = token_service) -> Dict[str, Any]:
        validator = (
            validate(payload)
            .required("full_name", "Full name is required")
            .min_length("full_name", 2, "Full name must be at least 2 characters")
            .required("email", "Email is required")
            .email("email", "Invalid email format")
            .required("password", "Password is required")
            .min_length("password", 6, "Password must be at least 6 characters")
            .required("country", "Country is required")
        )
        for field in ("phone", "city", "zone", "church", "group", "kingschat_username"):
            validator.optional(field)
        if payload.get("phone"):
            validator.phone("phone", "Invalid phone number")
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        email = data["email"].lower()
        if UserRepo.get_by_email(db, email) is not None:
            raise Conflict("Email already registered")

        user = User(
            email=email,
            # Passwords are hashed untrimmed
            password=hash_password(payload["password"]),
            full_name=data["full_name"],
            phone=data.get("phone"),
            country=data["country"],
            city=data.get("city"),
            zone=data.get("zone"),
            church=data.get("church"),
            group=data.get("group"),
            kingschat_username=data.get("kingschat_username"),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.id} registered")

        _welcome(db, user)
        return session_payload(user, tokens)

    @staticmethod
    def login(db: Session, payload: Dict[str, Any], tokens: TokenService = token_service) -> Dict[str, Any]:
        validator = (
            validate(payload)
            .required("email", "Email is required")
            .email("email", "Invalid email format")
            .required("password", "Password is required")
        )
        if validator.fails():
            raise ValidationFailed(validator.errors())

        user = UserRepo.get_by_email(db, payload["email"])
        if user is None or not verify_password(payload["password"], user.password):
            raise AuthenticationError("Invalid email or password")

        return session_payload(user, tokens)

    @staticmethod
    def forgot_password(db: Session, payload: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Issue a reset token; the reply never reveals whether the account exists"""
        validator = validate(payload).required("email", "Email is required").email("email", "Invalid email format")
        if validator.fails():
            raise ValidationFailed(validator.errors())

        result = {"message": RESET_REQUESTED_MESSAGE}
        email = validator.validated()["email"].lower()
        user = UserRepo.get_by_email(db, email)
        if user is None:
            return result

        now = now or datetime.utcnow()
        db.query(PasswordReset).filter(PasswordReset.email == email).delete(synchronize_session=False)
        reset = PasswordReset(
            email=email,
            token=generate_reset_token(),
            expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
        )
        db.add(reset)
        db.commit()
        logger.info(f"Password reset requested for user {user.id}")

        # TODO: deliver the reset link by email once a mail provider is configured
        if settings.RETURN_RESET_TOKEN:
            result["reset_token"] = reset.token
        return result

    @staticmethod
    def reset_password(db: Session, payload: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        validator = (
            validate(payload)
            .required("token", "Reset token is required")
            .required("password", "Password is required")
            .min_length("password", 6, "Password must be at least 6 characters")
            .required("password_confirmation", "Password confirmation is required")
            .confirmed("password", "password_confirmation", "Passwords do not match")
        )
        if validator.fails():
            raise ValidationFailed(validator.errors())

        now = now or datetime.utcnow()
        reset = (
            db.query(PasswordReset)
            .filter(PasswordReset.token == payload["token"], PasswordReset.expires_at > now)
            .first()
        )
        if reset is None:
            raise Conflict("Invalid or expired reset token")

        user = UserRepo.get_by_email(db, reset.email)
        if user is None:
            raise NotFound("User not found")

        user.password = hash_password(payload["password"])
        db.delete(reset)
        db.commit()
        logger.info(f"Password reset completed for user {user.id}")
        return {"message": "Password has been reset successfully"}

    @staticmethod
    def kingschat_login(
        db: Session,
        payload: Dict[str, Any],
        tokens: TokenService = token_service,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> Dict[str, Any]:
        """Sign in with a KingsChat access token, creating the account on first use"""
        access_token = payload.get("access_token") or payload.get("accessToken")
        if not access_token:
            raise ValidationFailed({"access_token": "Access token is required"})

        profile = fetch_kingschat_profile(access_token, transport=transport)
        username = profile.get("username")
        if not username:
            raise AuthenticationError("Failed to authenticate with KingsChat")
        email = (profile.get("email") or "").strip().lower()

        conditions = [User.kingschat_username == username]
        if email:
            conditions.append(User.email == email)
        user = db.query(User).filter(or_(*conditions)).first()

        if user is not None:
            if not user.kingschat_username:
                user.kingschat_username = username
                db.commit()
            return session_payload(user, tokens)

        full_name = (
            profile.get("display_name")
            or " ".join(part for part in (profile.get("first_name"), profile.get("last_name")) if part)
            or username
        )
        user = User(
            email=email or f"{username}@kingschat.user",
            password=hash_password(generate_random_password()),
            full_name=full_name,
            country=profile.get("country") or "Unknown",
            kingschat_username=username,
            avatar=profile.get("avatar"),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.id} created from KingsChat profile {username}")

        _welcome(db, user, via=" via KingsChat")
        return session_payload(user, tokens)

    @staticmethod
    def profile(user: User) -> Dict[str, Any]:
        return user_to_dict(user)

    @staticmethod
    def update_profile(db: Session, user: User, payload: Dict[str, Any]) -> Dict[str, Any]:
        validator = validate(payload)
        for field in PROFILE_FIELDS:
            validator.optional(field)
        if payload.get("phone"):
            validator.phone("phone", "Invalid phone number")
        # Required columns may be changed but not cleared
        if "full_name" in payload:
            validator.required("full_name", "Full name is required")
            validator.min_length("full_name", 2, "Full name must be at least 2 characters")
        if "country" in payload:
            validator.required("country", "Country is required")
        if validator.fails():
            raise ValidationFailed(validator.errors())

        for field in PROFILE_FIELDS:
            if field in payload:
                setattr(user, field, payload[field])
        db.commit()
        db.refresh(user)
        return user_to_dict(user)

    @staticmethod
    def stats(db: Session, user: User) -> Dict[str, int]:
        registrations = db.query(Ticket).filter(Ticket.user_id == user.id).count()
        attended = db.query(Ticket).filter(
            Ticket.user_id == user.id, Ticket.status == TicketStatus.USED.value
        ).count()
        testimonies = db.query(Testimony).filter(Testimony.user_id == user.id)
        return {
            "events_attended": attended,
            "events_registered": registrations,
            "total_registrations": registrations,
            "testimonies": testimonies.count(),
            "approved_testimonies": testimonies.filter(
                Testimony.status == TestimonyStatus.APPROVED.value
            ).count(),
        }

    @staticmethod
    def lookup_by_ticket_code(db: Session, qr_code: Optional[str]) -> Dict[str, Any]:
        """Public details of the holder of a scanned ticket"""
        if not qr_code:
            raise Conflict("QR code is required")
        ticket = TicketRepo.get_by_code(db, qr_code)
        if ticket is None:
            raise NotFound("No user found with this QR code")
        holder = db.get(User, ticket.user_id)
        if holder is None:
            raise NotFound("User not found")
        return user_summary(holder, "full_name", "email", "avatar", "church", "country")


def fetch_kingschat_profile(access_token: str, transport: Optional[httpx.BaseTransport] = None) -> Dict[str, Any]:
    try:
        with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=transport) as client:
            response = client.get(
                settings.KINGSCHAT_API_URL,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            )
            response.raise_for_status()
            profile = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"KingsChat profile request failed: {e}")
        raise AuthenticationError("Failed to authenticate with KingsChat")

    if not isinstance(profile, dict):
        raise AuthenticationError("Failed to authenticate with KingsChat")
    return profile


def kingschat_callback_page(access_token: Optional[str], refresh_token: Optional[str]) -> str:
    """HTML page that hands the KingsChat tokens to the mobile app via deep link"""
    params = {}
    if access_token:
        params["accessToken"] = access_token
    if refresh_token:
        params["refreshToken"] = refresh_token

    deep_link = f"{settings.APP_SCHEME}://auth/callback"
    if params:
        deep_link += f"?{urlencode(params)}"
    href = escape(deep_link, quote=True)

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Redirecting to Rhapsody Crusades App...</title>
</head>
<body>
  <h1>KingsChat Authentication Successful</h1>
  <p>Redirecting to the Rhapsody Crusades app...</p>
  <p>If you're not redirected automatically, tap the button below:</p>
  <a href="{href}">Open App</a>
  <script>window.location.href = "{href}";</script>
</body>
</html>
"""
