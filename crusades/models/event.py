"""
Event model

Locally created events take ids from 1000 upwards; lower ids belong to the
external crusade feed.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime

from crusades.core.db import Base

LOCAL_EVENT_ID_START = 1000

class Event(Base):
    __tablename__ = "events"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(String(10), nullable=False, index=True)  # ISO calendar date
    time = Column(String(20))
    venue = Column(String(255), nullable=False)
    address = Column(String(255))
    country = Column(String(100))
    city = Column(String(100))
    category = Column(String(100), default="Crusade")
    image = Column(String(1024))
    capacity = Column(Integer)  # None means unlimited
    featured = Column(Boolean, default=False)
    created_by = Column(String(32), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
