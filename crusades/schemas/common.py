"""
Common Pydantic schemas
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    errors: Optional[Dict[str, str]] = None

class PaginationMeta(BaseModel):
    """Pagination block attached to list responses"""
    total: int
    page: int
    per_page: int
    total_pages: int

class PaginatedResponse(StandardResponse):
    """Standard response carrying one page of items"""
    pagination: PaginationMeta
