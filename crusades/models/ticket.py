"""
Ticket model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index

from crusades.core.db import Base
from crusades.core.parties import TicketStatus
from crusades.models._ids import new_id

class Ticket(Base):
    __tablename__ = "tickets"
    
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    qr_code = Column(String(32), unique=True, nullable=False, index=True)
    registration_date = Column(String(10), nullable=False)
    status = Column(String(20), default=TicketStatus.ACTIVE.value, nullable=False)  # active, used, cancelled
    checked_in_at = Column(DateTime)
    checked_in_by = Column(String(32))
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # One ticket per (user, event) is checked before insert, not enforced here
    __table_args__ = (Index("ix_tickets_user_event", "user_id", "event_id"),)
