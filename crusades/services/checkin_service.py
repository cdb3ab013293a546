"""
Ticket check-in performed by event staff
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from crusades.core.errors import NotFound, PermissionDenied
from crusades.core.parties import TicketStatus, transition
from crusades.models import User
from crusades.services.repositories import EventRepo, StaffRepo, TicketRepo
from crusades.services.serializers import ticket_to_dict

logger = logging.getLogger(__name__)

class CheckInService:
    """Service for checking attendees in at an event"""

    @staticmethod
    def check_in(
        db: Session,
        actor: User,
        ticket_ref: str,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Mark a ticket used; the actor must be the event creator or staff"""
        ticket = TicketRepo.get_by_ref(db, ticket_ref)
        if not ticket:
            raise NotFound("Ticket not found")

        event = EventRepo.get(db, ticket.event_id)
        if not event:
            raise NotFound("Event not found")

        if not StaffRepo.can_manage_attendance(db, event, actor.id):
            raise PermissionDenied("Only event creator or staff can check in tickets")

        # Raises Conflict for used or cancelled tickets
        ticket.status = transition(ticket.status, TicketStatus.USED).value
        ticket.checked_in_at = now or datetime.utcnow()
        ticket.checked_in_by = actor.id
        db.commit()
        db.refresh(ticket)

        holder = db.get(User, ticket.user_id)
        logger.info(f"Ticket {ticket.id} checked in at event {event.id} by {actor.id}")

        return {
            **ticket_to_dict(ticket),
            "holder_name": holder.full_name if holder else None
        }
