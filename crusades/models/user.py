"""
User model
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime

from crusades.core.db import Base
from crusades.models._ids import new_id

class User(Base):
    __tablename__ = "users"
    
    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lowercased
    password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(30))
    country = Column(String(100), nullable=False)
    city = Column(String(100))
    zone = Column(String(100))
    church = Column(String(255))
    group = Column(String(100))
    kingschat_username = Column(String(100), index=True)
    avatar = Column(String(1024))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
