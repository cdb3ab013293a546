"""
Event-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

class EventQuery(BaseModel):
    """Filters accepted by the event listing"""
    search: Optional[str] = None
    category: Optional[str] = None
    upcoming: bool = False
    featured: bool = False
    page: int = 1
    limit: int = 50

class ExternalCrusade(BaseModel):
    """One item of the external crusade feed"""
    model_config = ConfigDict(extra="allow")
    
    id: int
    title: str
    description: str = ""
    date: str
    venue: str = ""
    time: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    image: Optional[str] = None
