"""
Event registration and ticket issuance.

The duplicate check, capacity count and code uniqueness check are separate
reads before the insert, so two simultaneous registrations can both pass
them. Only ``qr_code`` is protected by a unique constraint.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from crusades.core.errors import Conflict, NotFound, PermissionDenied
from crusades.core.parties import (
    NotificationType,
    OwnedBy,
    TicketStatus,
    UserRecipient,
    transition,
)
from crusades.models import Ticket, User
from crusades.services.catalog_service import CatalogService, today_iso
from crusades.services.external_feed import ExternalFeedClient, as_event
from crusades.services.notification_service import NotificationService
from crusades.services.repositories import EventRepo, StaffRepo, TicketRepo
from crusades.services.serializers import event_to_dict, ticket_to_dict, user_summary
from crusades.utils.security import generate_ticket_code

logger = logging.getLogger(__name__)


class RegistrationService:
    """Ticket issuance and ticket views"""

    @staticmethod
    def unique_code(db: Session, generate: Callable[[], str] = generate_ticket_code) -> str:
        code = generate()
        while TicketRepo.code_exists(db, code):
            code = generate()
        return code

    @staticmethod
    def register(
        db: Session,
        feed: ExternalFeedClient,
        user: User,
        event_id: int,
        generate: Callable[[], str] = generate_ticket_code,
        today: Optional[str] = None,
    ) -> Dict[str, Any]:
        event = CatalogService.resolve_event(db, feed, event_id)
        if event is None:
            raise NotFound("Event not found")

        if TicketRepo.find_for_user(db, user.id, event_id) is not None:
            raise Conflict("You are already registered for this event")

        if event.capacity:
            if TicketRepo.count_for_event(db, event_id) >= event.capacity:
                raise Conflict("This event has reached its capacity")

        ticket = Ticket(
            user_id=user.id,
            event_id=event_id,
            qr_code=RegistrationService.unique_code(db, generate),
            registration_date=today or today_iso(),
            status=TicketStatus.ACTIVE.value,
        )
        db.add(ticket)
        db.commit()
        db.refresh(ticket)
        logger.info(f"User {user.id} registered for event {event_id} (ticket {ticket.id})")

        NotificationService.notify(
            db,
            UserRecipient(user.id),
            NotificationType.REGISTRATION,
            "Registration Confirmed!",
            f"You have successfully registered for {event.title}.",
            {"event_id": event_id, "ticket_id": ticket.id},
        )
        if isinstance(event.owner, OwnedBy) and event.owner.user_id != user.id:
            NotificationService.notify(
                db,
                UserRecipient(event.owner.user_id),
                NotificationType.REGISTRATION,
                "New Registration",
                f"{user.full_name} has registered for {event.title}.",
                {"event_id": event_id, "user_id": user.id},
            )

        if event.is_external:
            event_data = {"id": event_id, "title": event.title, "external": True}
        else:
            event_data = event.data
        return {**ticket_to_dict(ticket), "event": event_data}

    @staticmethod
    def cancel_ticket(db: Session, ticket: Ticket) -> Ticket:
        """Move an active ticket to cancelled"""
        ticket.status = transition(ticket.status, TicketStatus.CANCELLED).value
        db.commit()
        db.refresh(ticket)
        return ticket

    @staticmethod
    def tickets_for_user(db: Session, feed: ExternalFeedClient, user: User) -> List[Dict[str, Any]]:
        """The holder's tickets, each with local or external event data"""
        tickets = db.query(Ticket).filter(Ticket.user_id == user.id).order_by(Ticket.created_at.desc()).all()
        external = None
        results = []
        for ticket in tickets:
            event = EventRepo.get(db, ticket.event_id)
            if event is not None:
                event_data = event_to_dict(event)
            else:
                if external is None:
                    external = {item["id"]: item for item in feed.fetch_all()}
                item = external.get(ticket.event_id)
                event_data = as_event(item) if item else None
            results.append({**ticket_to_dict(ticket), "event": event_data})
        return results

    @staticmethod
    def get_ticket(db: Session, ref: str, viewer: Optional[User], verify: bool = False) -> Dict[str, Any]:
        """Ticket detail by id or code.

        Verify mode, used by scanning staff, includes holder details; the
        normal view refuses other users' tickets.
        """
        ticket = TicketRepo.get_by_ref(db, ref)
        if ticket is None:
            raise NotFound("Ticket not found")

        event = EventRepo.get(db, ticket.event_id)
        data = {**ticket_to_dict(ticket), "event": event_to_dict(event) if event else None}

        if verify:
            holder = db.get(User, ticket.user_id)
            data["holder_name"] = holder.full_name if holder else None
            data["holder"] = user_summary(holder, "full_name", "email", "avatar", "church", "country")
            data["can_check_in"] = bool(
                viewer and event and StaffRepo.can_manage_attendance(db, event, viewer.id)
            )
            return data

        if viewer is not None and ticket.user_id != viewer.id:
            raise PermissionDenied("You can only view your own tickets")
        return data

    @staticmethod
    def find_ticket_for_holder(db: Session, ref: str, holder: User) -> Ticket:
        ticket = TicketRepo.get_by_ref(db, ref)
        if ticket is None:
            raise NotFound("Ticket not found")
        if ticket.user_id != holder.id:
            raise PermissionDenied("You can only view your own tickets")
        return ticket
