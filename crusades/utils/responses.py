"""
Standardized response utilities
"""

import math
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from crusades.core.errors import ServiceError, ValidationFailed
from crusades.schemas.common import StandardResponse, ErrorResponse, PaginatedResponse, PaginationMeta

NEW_TOKEN_HEADER = "x-new-token"

def success_response(
    message: str = "Success",
    data: Any = None,
    status_code: int = 200,
    new_token: Optional[str] = None
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=data
    )
    return with_new_token(
        JSONResponse(content=jsonable_encoder(response.model_dump()), status_code=status_code),
        new_token
    )

def created_response(
    message: str = "Created successfully",
    data: Any = None,
    new_token: Optional[str] = None
) -> JSONResponse:
    """Create standardized 201 response"""
    return success_response(message, data, status_code=201, new_token=new_token)

def error_response(
    message: str,
    status_code: int = 400,
    errors: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        errors=errors
    )
    return JSONResponse(
        content=response.model_dump(exclude_none=True),
        status_code=status_code
    )

def validation_error_response(errors: Dict[str, str]) -> JSONResponse:
    """Create 422 response carrying per-field messages"""
    return error_response("Validation failed", status_code=422, errors=errors)

def service_error_response(exc: ServiceError) -> JSONResponse:
    """Render a domain error raised by a service"""
    if isinstance(exc, ValidationFailed):
        return error_response(exc.message, status_code=exc.status_code, errors=exc.errors)
    return error_response(exc.message, status_code=exc.status_code)

def paginated_response(
    items: List[Any],
    total: int,
    page: int,
    per_page: int,
    message: str = "Success",
    new_token: Optional[str] = None
) -> JSONResponse:
    """Create standardized paginated response"""
    response = PaginatedResponse(
        success=True,
        message=message,
        data=items,
        pagination=pagination_meta(total, page, per_page)
    )
    return with_new_token(
        JSONResponse(content=jsonable_encoder(response.model_dump())),
        new_token
    )

def pagination_meta(total: int, page: int, per_page: int) -> PaginationMeta:
    return PaginationMeta(
        total=total,
        page=page,
        per_page=per_page,
        total_pages=math.ceil(total / per_page) if per_page else 0
    )

def with_new_token(response: JSONResponse, new_token: Optional[str]) -> JSONResponse:
    """Attach a silently refreshed token for the client to adopt"""
    if new_token:
        response.headers[NEW_TOKEN_HEADER] = new_token
    return response

def unauthorized_error(message: str = "Unauthorized"):
    """Create unauthorized error"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message
    )
