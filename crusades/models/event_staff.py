"""
Event staff model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from crusades.core.db import Base
from crusades.core.parties import StaffRole
from crusades.models._ids import new_id

class EventStaff(Base):
    __tablename__ = "event_staff"
    
    id = Column(String(32), primary_key=True, default=new_id)
    event_id = Column(Integer, nullable=False, index=True)
    user_id = Column(String(32), nullable=False, index=True)
    role = Column(String(20), default=StaffRole.CHECKER.value, nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow)
    added_by = Column(String(32), nullable=False)
    
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_staff_event_user"),)
