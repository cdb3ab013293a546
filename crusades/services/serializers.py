"""
Read-only projections of stored rows into API payloads.

Derived fields (``content`` for a testimony's text, per-reader ``read`` on a
notification) are computed here and never stored.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from crusades.models import (
    Admin,
    Event,
    EventStaff,
    Notification,
    Testimony,
    TestimonyCategory,
    Ticket,
    User,
)

USER_FIELDS = (
    "id", "email", "full_name", "phone", "country", "city", "zone",
    "church", "group", "kingschat_username", "avatar", "created_at", "updated_at",
)

EVENT_FIELDS = (
    "id", "title", "description", "date", "time", "venue", "address", "country",
    "city", "category", "image", "capacity", "featured", "created_by", "created_at", "updated_at",
)

TICKET_FIELDS = (
    "id", "user_id", "event_id", "qr_code", "registration_date", "status",
    "checked_in_at", "checked_in_by", "created_at",
)

CATEGORY_FIELDS = (
    "id", "name", "slug", "description", "icon", "color", "order", "active", "created_at", "updated_at",
)


def _iso(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _pick(row, fields: Iterable[str]) -> Dict[str, Any]:
    return {field: _iso(getattr(row, field)) for field in fields}


def user_to_dict(user: User) -> Dict[str, Any]:
    return _pick(user, USER_FIELDS)


def user_summary(user: Optional[User], *fields: str) -> Optional[Dict[str, Any]]:
    """Small public view of a user, e.g. attendee or staff listings"""
    if user is None:
        return None
    return {"id": user.id, **{field: getattr(user, field) for field in fields}}


def event_to_dict(event: Event) -> Dict[str, Any]:
    return _pick(event, EVENT_FIELDS)


def ticket_to_dict(ticket: Ticket) -> Dict[str, Any]:
    return _pick(ticket, TICKET_FIELDS)


def category_to_dict(category: TestimonyCategory) -> Dict[str, Any]:
    return _pick(category, CATEGORY_FIELDS)


def testimony_to_dict(testimony: Testimony) -> Dict[str, Any]:
    return {
        "id": testimony.id,
        "user_id": testimony.user_id,
        "title": testimony.title,
        "content": testimony.text,
        "event_id": testimony.event_id,
        "category_id": testimony.category_id,
        "image": testimony.image,
        "status": testimony.status,
        "likes": testimony.liked_by,
        "created_at": _iso(testimony.created_at),
        "updated_at": _iso(testimony.updated_at),
    }


def notification_to_dict(notification: Notification, reader_id: Optional[str] = None) -> Dict[str, Any]:
    read_by = notification.read_by
    data = {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data,
        "read_by": read_by,
        "created_at": _iso(notification.created_at),
    }
    if reader_id is not None:
        data["read"] = reader_id in read_by
    return data


def staff_to_dict(staff: EventStaff) -> Dict[str, Any]:
    return {
        "id": staff.id,
        "event_id": staff.event_id,
        "user_id": staff.user_id,
        "role": staff.role,
        "added_at": _iso(staff.added_at),
        "added_by": staff.added_by,
    }


def admin_to_dict(admin: Admin) -> Dict[str, Any]:
    return {
        "id": admin.id,
        "username": admin.username,
        "name": admin.name,
        "role": admin.role,
        "created_at": _iso(admin.created_at),
    }
