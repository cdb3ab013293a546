"""
Request bodies with a fixed shape.

Bodies that go through field-rule validation are accepted as plain objects
by the routes instead.
"""

from typing import Optional
from pydantic import BaseModel

class MarkReadRequest(BaseModel):
    """Mark one notification read"""
    notification_id: Optional[str] = None

class AdminLoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class ModerationRequest(BaseModel):
    """Approve or reject a testimony"""
    action: str
