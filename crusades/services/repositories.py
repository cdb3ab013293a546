"""
Repository layer for the queries shared between services.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crusades.core.parties import TicketStatus, is_owned_by, owner_from_column
from crusades.models import Event, EventStaff, Ticket, User
from crusades.models.event import LOCAL_EVENT_ID_START


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def next_id(db: Session) -> int:
        last_id = db.query(func.max(Event.id)).scalar()
        if last_id is None:
            return LOCAL_EVENT_ID_START
        return max(last_id + 1, LOCAL_EVENT_ID_START)

    @staticmethod
    def list_by_creator(db: Session, user_id: str) -> List[Event]:
        return db.query(Event).filter(Event.created_by == user_id).order_by(Event.date.desc()).all()


# -------- Ticket repository --------

class TicketRepo:
    @staticmethod
    def get_by_ref(db: Session, ref: str) -> Optional[Ticket]:
        """Find a ticket by storage id, falling back to its scannable code"""
        ticket = db.get(Ticket, ref)
        if ticket is None:
            ticket = db.query(Ticket).filter(Ticket.qr_code == ref).first()
        return ticket

    @staticmethod
    def get_by_code(db: Session, qr_code: str) -> Optional[Ticket]:
        return db.query(Ticket).filter(Ticket.qr_code == qr_code).first()

    @staticmethod
    def find_for_user(db: Session, user_id: str, event_id: int) -> Optional[Ticket]:
        return db.query(Ticket).filter(Ticket.user_id == user_id, Ticket.event_id == event_id).first()

    @staticmethod
    def code_exists(db: Session, qr_code: str) -> bool:
        return db.query(Ticket.id).filter(Ticket.qr_code == qr_code).first() is not None

    @staticmethod
    def count_for_event(db: Session, event_id: int, status: Optional[TicketStatus] = None) -> int:
        query = db.query(Ticket).filter(Ticket.event_id == event_id)
        if status is not None:
            query = query.filter(Ticket.status == status.value)
        return query.count()


# -------- Staff repository --------

class StaffRepo:
    @staticmethod
    def find(db: Session, event_id: int, user_id: str) -> Optional[EventStaff]:
        return db.query(EventStaff).filter(
            EventStaff.event_id == event_id,
            EventStaff.user_id == user_id
        ).first()

    @staticmethod
    def can_manage_attendance(db: Session, event: Event, user_id: str) -> bool:
        """Event creator or any staff grant on the event"""
        if is_owned_by(owner_from_column(event.created_by), user_id):
            return True
        return StaffRepo.find(db, event.id, user_id) is not None


# -------- User repository --------

class UserRepo:
    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()
