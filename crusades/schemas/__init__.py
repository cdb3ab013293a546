"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .requests import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "PaginationMeta",
    "PaginatedResponse",
    "EventQuery",
    "ExternalCrusade",
    "MarkReadRequest",
    "AdminLoginRequest",
    "ModerationRequest",
]
