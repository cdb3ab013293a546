"""
Admin account model
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime

from crusades.core.db import Base
from crusades.models._ids import new_id

class Admin(Base):
    __tablename__ = "admins"
    
    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), default="admin")
    created_at = Column(DateTime, default=datetime.utcnow)
