"""
Event staff grants and attendee views for creators and staff
"""

import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crusades.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from crusades.core.parties import (
    NotificationType,
    StaffRole,
    TicketStatus,
    UserRecipient,
    is_owned_by,
    owner_from_column,
)
from crusades.models import Event, EventStaff, Ticket, User
from crusades.services.notification_service import NotificationService
from crusades.services.repositories import EventRepo, StaffRepo, TicketRepo
from crusades.services.serializers import event_to_dict, staff_to_dict, ticket_to_dict, user_summary
from crusades.utils.validator import validate

logger = logging.getLogger(__name__)

ROLES = [role.value for role in StaffRole]


def _event_or_404(db: Session, event_id: int) -> Event:
    event = EventRepo.get(db, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def _require_creator(event: Event, user: User, action: str):
    if not is_owned_by(owner_from_column(event.created_by), user.id):
        raise PermissionDenied(f"Only the event creator can {action}")


def _require_creator_or_staff(db: Session, event: Event, user: User, action: str):
    if not StaffRepo.can_manage_attendance(db, event, user.id):
        raise PermissionDenied(f"Only event creator or staff can {action}")


class StaffService:
    """Staff management and attendee listings"""

    @staticmethod
    def list_staff(db: Session, user: User, event_id: int) -> List[Dict[str, Any]]:
        event = _event_or_404(db, event_id)
        _require_creator_or_staff(db, event, user, "view staff list")

        results = []
        for staff in db.query(EventStaff).filter(EventStaff.event_id == event_id).all():
            member = db.get(User, staff.user_id)
            results.append({
                **staff_to_dict(staff),
                "user": user_summary(member, "full_name", "email", "avatar", "church"),
            })
        return results

    @staticmethod
    def add_staff(db: Session, user: User, event_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Grant a staff role, naming the user directly or by one of their ticket codes"""
        if not payload.get("user_id") and not payload.get("qr_code"):
            raise Conflict("Either user_id or qr_code is required")

        validator = validate(payload).optional("user_id").optional("qr_code").optional("role")
        validator.one_of("role", ROLES, "Invalid role")
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()
        role = data.get("role") or StaffRole.CHECKER.value

        event = _event_or_404(db, event_id)
        _require_creator(event, user, "add staff")

        staff_user_id = data.get("user_id")
        if not staff_user_id:
            ticket = TicketRepo.get_by_code(db, data["qr_code"])
            if ticket is None:
                raise NotFound("No user found with this QR code")
            staff_user_id = ticket.user_id

        staff_user = db.get(User, staff_user_id)
        if staff_user is None:
            raise NotFound("User not found")

        if staff_user.id == user.id:
            raise Conflict("You cannot add yourself as staff")

        if StaffRepo.find(db, event_id, staff_user.id) is not None:
            raise Conflict("User is already a staff member for this event")

        staff = EventStaff(event_id=event_id, user_id=staff_user.id, role=role, added_by=user.id)
        db.add(staff)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("User is already a staff member for this event")
        db.refresh(staff)
        logger.info(f"User {staff_user.id} added as {role} for event {event_id}")

        NotificationService.notify(
            db,
            UserRecipient(staff_user.id),
            NotificationType.EVENT,
            "You have been added as staff!",
            f"You have been added as {role} for {event.title}.",
            {"event_id": event_id},
        )

        return {
            **staff_to_dict(staff),
            "user": user_summary(staff_user, "full_name", "email", "avatar", "church"),
        }

    @staticmethod
    def remove_staff(db: Session, user: User, event_id: int, staff_id: str) -> None:
        event = _event_or_404(db, event_id)
        _require_creator(event, user, "remove staff")

        staff = db.query(EventStaff).filter(EventStaff.id == staff_id, EventStaff.event_id == event_id).first()
        if staff is None:
            raise NotFound("Staff member not found")
        db.delete(staff)
        db.commit()

    @staticmethod
    def attendees(db: Session, user: User, event_id: int, page: int = 1, limit: int = 50) -> Tuple[List[Dict[str, Any]], int]:
        event = _event_or_404(db, event_id)
        _require_creator_or_staff(db, event, user, "view attendees")

        query = db.query(Ticket).filter(Ticket.event_id == event_id)
        total = query.count()
        tickets = query.order_by(Ticket.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

        results = []
        for ticket in tickets:
            holder = db.get(User, ticket.user_id)
            results.append({
                **ticket_to_dict(ticket),
                "user": user_summary(holder, "full_name", "email", "avatar", "church", "country"),
            })
        return results, total

    @staticmethod
    def export_event(db: Session, user: User, event_id: int) -> Tuple[Event, List[Dict[str, Any]]]:
        """Event plus every attendee row, for spreadsheet export"""
        event = _event_or_404(db, event_id)
        _require_creator_or_staff(db, event, user, "export attendees")

        rows = []
        tickets = db.query(Ticket).filter(Ticket.event_id == event_id).order_by(Ticket.created_at.asc()).all()
        for ticket in tickets:
            holder = db.get(User, ticket.user_id)
            rows.append({"ticket": ticket, "holder": holder})
        return event, rows

    @staticmethod
    def staff_events(db: Session, user: User) -> List[Dict[str, Any]]:
        """Events where the caller holds a staff grant"""
        grants = {s.event_id: s for s in db.query(EventStaff).filter(EventStaff.user_id == user.id)}
        if not grants:
            return []

        events = db.query(Event).filter(Event.id.in_(list(grants))).order_by(Event.date.desc()).all()
        return [
            {
                **event_to_dict(event),
                "registration_count": TicketRepo.count_for_event(db, event.id),
                "checked_in_count": TicketRepo.count_for_event(db, event.id, TicketStatus.USED),
                "staff_role": grants[event.id].role,
            }
            for event in events
        ]
