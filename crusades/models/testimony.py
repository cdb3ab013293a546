"""
Testimony, like and category models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from crusades.core.db import Base
from crusades.core.parties import TestimonyStatus
from crusades.models._ids import new_id

class Testimony(Base):
    __tablename__ = "testimonies"
    
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    event_id = Column(Integer, index=True)
    category_id = Column(Integer, index=True)
    image = Column(String(1024))
    status = Column(String(20), default=TestimonyStatus.PENDING.value, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    likes = relationship("TestimonyLike", back_populates="testimony", cascade="all, delete-orphan")

    @property
    def liked_by(self):
        return [like.user_id for like in self.likes]


class TestimonyLike(Base):
    __tablename__ = "testimony_likes"
    
    id = Column(Integer, primary_key=True, index=True)
    testimony_id = Column(String(32), ForeignKey("testimonies.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(32), nullable=False)
    
    testimony = relationship("Testimony", back_populates="likes")
    
    __table_args__ = (UniqueConstraint("testimony_id", "user_id", name="uq_testimony_like"),)


class TestimonyCategory(Base):
    __tablename__ = "testimony_categories"
    
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    icon = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False)
    order = Column(Integer, default=0, index=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
