"""
Database models package
"""

from .user import User
from .event import Event
from .ticket import Ticket
from .event_staff import EventStaff
from .testimony import Testimony, TestimonyLike, TestimonyCategory
from .notification import Notification, NotificationRead
from .password_reset import PasswordReset
from .admin import Admin

__all__ = [
    "User",
    "Event",
    "Ticket",
    "EventStaff",
    "Testimony",
    "TestimonyLike",
    "TestimonyCategory",
    "Notification",
    "NotificationRead",
    "PasswordReset",
    "Admin",
]
