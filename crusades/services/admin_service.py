"""
Back-office operations behind the admin session
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crusades.core.config import settings
from crusades.core.errors import AuthenticationError, Conflict, NotFound, ValidationFailed
from crusades.core.parties import NotificationType, TestimonyStatus, TicketStatus, UserRecipient
from crusades.models import Admin, Event, Testimony, TestimonyCategory, Ticket, User
from crusades.services.notification_service import NotificationService
from crusades.services.repositories import TicketRepo, UserRepo
from crusades.services.serializers import (
    admin_to_dict,
    category_to_dict,
    event_to_dict,
    testimony_to_dict,
    ticket_to_dict,
    user_to_dict,
)
from crusades.utils.security import hash_password, verify_password
from crusades.utils.validator import validate

logger = logging.getLogger(__name__)

# name -> (icon, color)
CATEGORY_PRESETS = {
    "Healing": ("medkit-outline", "#10B981"),
    "Salvation": ("heart-outline", "#EF4444"),
    "Deliverance": ("shield-checkmark-outline", "#8B5CF6"),
    "Financial": ("cash-outline", "#F59E0B"),
    "Family": ("people-outline", "#3B82F6"),
    "Career": ("briefcase-outline", "#6366F1"),
    "Education": ("school-outline", "#14B8A6"),
    "Marriage": ("heart-circle-outline", "#EC4899"),
    "Protection": ("shield-outline", "#64748B"),
    "Miracle": ("star-outline", "#FBBF24"),
    "Other": ("ellipsis-horizontal-outline", "#9CA3AF"),
}
DEFAULT_CATEGORY_ICON = "star-outline"
DEFAULT_CATEGORY_COLOR = "#007bff"

ADMIN_USER_FIELDS = ("full_name", "email", "phone", "country", "city", "church", "zone")


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def ensure_default_admin(db: Session) -> None:
    if db.query(Admin).count() == 0:
        db.add(Admin(
            username=settings.DEFAULT_ADMIN_USERNAME,
            password=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
            name="Administrator",
            role="admin",
        ))
        db.commit()
        logger.warning(f"Default admin '{settings.DEFAULT_ADMIN_USERNAME}' created; change its password")


def _ticket_row(db: Session, ticket: Ticket) -> Dict[str, Any]:
    event = db.get(Event, ticket.event_id)
    holder = db.get(User, ticket.user_id)
    return {
        **ticket_to_dict(ticket),
        "event_title": event.title if event else "Unknown Event",
        "user_name": holder.full_name if holder else "Unknown User",
        "user_email": holder.email if holder else "",
    }


class AdminService:
    """Admin authentication and CRUD over users, events, tickets, testimonies and categories"""

    @staticmethod
    def login(db: Session, username: Optional[str], password: Optional[str]) -> Admin:
        if not username or not password:
            raise Conflict("Username and password are required")

        ensure_default_admin(db)

        admin = db.query(Admin).filter(Admin.username == username).first()
        if admin is None or not verify_password(password, admin.password):
            raise AuthenticationError("Invalid username or password")
        logger.info(f"Admin {admin.username} logged in")
        return admin

    @staticmethod
    def dashboard(db: Session) -> Dict[str, Any]:
        ensure_default_admin(db)

        recent_users = db.query(User).order_by(User.created_at.desc()).limit(5).all()
        recent_tickets = db.query(Ticket).order_by(Ticket.created_at.desc()).limit(5).all()
        return {
            "stats": {
                "total_users": db.query(User).count(),
                "total_tickets": db.query(Ticket).count(),
                "active_tickets": db.query(Ticket).filter(Ticket.status == TicketStatus.ACTIVE.value).count(),
                "used_tickets": db.query(Ticket).filter(Ticket.status == TicketStatus.USED.value).count(),
                "total_testimonies": db.query(Testimony).count(),
                "pending_testimonies": db.query(Testimony).filter(
                    Testimony.status == TestimonyStatus.PENDING.value
                ).count(),
                "total_events": db.query(Event).count(),
            },
            "recent_users": [
                {
                    "id": u.id,
                    "full_name": u.full_name,
                    "email": u.email,
                    "country": u.country,
                    "created_at": u.created_at,
                }
                for u in recent_users
            ],
            "recent_tickets": [_ticket_row(db, t) for t in recent_tickets],
        }

    # -------- Users --------

    @staticmethod
    def list_users(db: Session, search: Optional[str] = None) -> List[Dict[str, Any]]:
        query = db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.full_name.ilike(pattern),
                User.email.ilike(pattern),
                User.country.ilike(pattern),
            ))
        return [user_to_dict(u) for u in query.order_by(User.created_at.desc()).all()]

    @staticmethod
    def create_user(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
        validator = (
            validate(payload)
            .required("full_name", "Full name is required")
            .required("email", "Email is required")
            .email("email", "Invalid email format")
            .required("password", "Password is required")
            .min_length("password", 6, "Password must be at least 6 characters")
            .required("country", "Country is required")
        )
        for field in ("phone", "city", "church", "zone"):
            validator.optional(field)
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        email = data["email"].lower()
        if UserRepo.get_by_email(db, email) is not None:
            raise Conflict("Email already registered")

        user = User(
            email=email,
            password=hash_password(payload["password"]),
            full_name=data["full_name"],
            country=data["country"],
            phone=data.get("phone"),
            city=data.get("city"),
            church=data.get("church"),
            zone=data.get("zone"),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user_to_dict(user)

    @staticmethod
    def update_user(db: Session, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        validator = validate(payload).email("email", "Invalid email format")
        if validator.fails():
            raise ValidationFailed(validator.errors())

        if payload.get("email"):
            email = payload["email"].strip().lower()
            other = UserRepo.get_by_email(db, email)
            if other is not None and other.id != user.id:
                raise Conflict("Email already registered")
            user.email = email

        for field in ADMIN_USER_FIELDS:
            if field == "email" or field not in payload:
                continue
            # Blank optional fields are cleared; required ones are kept
            value = payload[field] or None
            if value is None and field in ("full_name", "country"):
                continue
            setattr(user, field, value)

        db.commit()
        db.refresh(user)
        return user_to_dict(user)

    @staticmethod
    def delete_user(db: Session, user_id: str) -> None:
        """Delete a user with their tickets and testimonies"""
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        db.query(Ticket).filter(Ticket.user_id == user_id).delete(synchronize_session=False)
        for testimony in db.query(Testimony).filter(Testimony.user_id == user_id).all():
            db.delete(testimony)
        db.delete(user)
        db.commit()
        logger.info(f"User {user_id} deleted by admin")

    # -------- Events and tickets --------

    @staticmethod
    def list_events(db: Session) -> List[Dict[str, Any]]:
        results = []
        for event in db.query(Event).order_by(Event.date.desc()).all():
            results.append({
                **event_to_dict(event),
                "total_registrations": TicketRepo.count_for_event(db, event.id),
                "checked_in": TicketRepo.count_for_event(db, event.id, TicketStatus.USED),
            })
        return results

    @staticmethod
    def list_tickets(db: Session, limit: int = 100) -> List[Dict[str, Any]]:
        tickets = db.query(Ticket).order_by(Ticket.created_at.desc()).limit(limit).all()
        return [_ticket_row(db, t) for t in tickets]

    # -------- Testimonies --------

    @staticmethod
    def list_testimonies(db: Session) -> List[Dict[str, Any]]:
        results = []
        for testimony in db.query(Testimony).order_by(Testimony.created_at.desc()).all():
            author = db.get(User, testimony.user_id)
            results.append({
                **testimony_to_dict(testimony),
                "user_name": author.full_name if author else "Unknown User",
            })
        return results

    @staticmethod
    def set_testimony_status(db: Session, testimony_id: str, action: str) -> Dict[str, Any]:
        if action not in ("approve", "reject"):
            raise ValidationFailed({"action": "Action must be approve or reject"})

        testimony = db.get(Testimony, testimony_id)
        if testimony is None:
            raise NotFound("Testimony not found")

        status = TestimonyStatus.APPROVED if action == "approve" else TestimonyStatus.REJECTED
        testimony.status = status.value
        db.commit()
        db.refresh(testimony)
        logger.info(f"Testimony {testimony_id} {status.value}")

        if status is TestimonyStatus.APPROVED:
            NotificationService.notify(
                db,
                UserRecipient(testimony.user_id),
                NotificationType.TESTIMONY,
                "Testimony Approved",
                f"Your testimony \"{testimony.title}\" is now visible to everyone.",
                {"testimony_id": testimony.id},
            )
        return testimony_to_dict(testimony)

    # -------- Categories --------

    @staticmethod
    def list_categories(db: Session) -> List[Dict[str, Any]]:
        categories = db.query(TestimonyCategory).order_by(TestimonyCategory.order.asc()).all()
        return [category_to_dict(c) for c in categories]

    @staticmethod
    def create_category(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
        validator = validate(payload).required("name", "Name is required").optional("description")
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        preset = payload.get("preset")
        if preset and preset != "custom" and preset in CATEGORY_PRESETS:
            icon, color = CATEGORY_PRESETS[preset]
        else:
            icon = payload.get("custom_icon") or DEFAULT_CATEGORY_ICON
            color = payload.get("custom_color") or DEFAULT_CATEGORY_COLOR

        slug = slugify(data["name"])
        if not slug:
            raise ValidationFailed({"name": "Name must contain letters or digits"})
        if db.query(TestimonyCategory).filter(TestimonyCategory.slug == slug).first() is not None:
            raise Conflict("A category with this name already exists")

        last_id = db.query(func.max(TestimonyCategory.id)).scalar()
        last_order = db.query(func.max(TestimonyCategory.order)).scalar()
        category = TestimonyCategory(
            id=(last_id or 0) + 1,
            name=data["name"],
            slug=slug,
            description=data.get("description"),
            icon=icon,
            color=color,
            order=0 if last_order is None else last_order + 1,
            active=True,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category_to_dict(category)

    @staticmethod
    def delete_category(db: Session, category_id: int) -> None:
        category = db.get(TestimonyCategory, category_id)
        if category is None:
            raise NotFound("Category not found")
        db.delete(category)
        db.commit()

    @staticmethod
    def toggle_category(db: Session, category_id: int) -> Dict[str, Any]:
        category = db.get(TestimonyCategory, category_id)
        if category is None:
            raise NotFound("Category not found")
        category.active = not category.active
        db.commit()
        db.refresh(category)
        return category_to_dict(category)

    @staticmethod
    def me(db: Session, session: Dict[str, Any]) -> Dict[str, Any]:
        admin = db.get(Admin, session.get("adminId"))
        if admin is None:
            raise AuthenticationError("Admin session required")
        return admin_to_dict(admin)
