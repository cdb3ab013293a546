"""
Notification and per-reader read receipt models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from crusades.core.db import Base
from crusades.core.parties import NotificationType
from crusades.models._ids import new_id

class Notification(Base):
    __tablename__ = "notifications"
    
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)  # user id or "all"
    type = Column(String(20), default=NotificationType.SYSTEM.value, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    # Relationships
    reads = relationship("NotificationRead", back_populates="notification", cascade="all, delete-orphan")

    @property
    def read_by(self):
        return [read.user_id for read in self.reads]


class NotificationRead(Base):
    __tablename__ = "notification_reads"
    
    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(String(32), ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(32), nullable=False, index=True)
    read_at = Column(DateTime, default=datetime.utcnow)
    
    notification = relationship("Notification", back_populates="reads")
    
    __table_args__ = (UniqueConstraint("notification_id", "user_id", name="uq_notification_read"),)
