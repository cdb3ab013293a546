"""
Testimony routes
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from crusades.api.deps import optional_user, require_user
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.services.auth import AuthContext
from crusades.services.serializers import testimony_to_dict
from crusades.services.testimony_service import TestimonyService
from crusades.utils.responses import (
    created_response,
    paginated_response,
    service_error_response,
    success_response,
)

router = APIRouter()

@router.get("")
async def list_testimonies(
    event_id: Optional[int] = None,
    category_id: Optional[int] = None,
    category: Optional[str] = None,
    my: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_user)
):
    """Approved testimonies, plus the caller's own"""
    items, total = TestimonyService.list_testimonies(
        db,
        auth.user,
        event_id=event_id,
        category_id=category_id,
        category_slug=category,
        my=my,
        page=page,
        limit=limit,
    )
    return paginated_response(items, total, page, limit, "Testimonies retrieved successfully", new_token=auth.new_token)

@router.post("")
async def create_testimony(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        testimony = TestimonyService.create_testimony(db, auth.user, payload)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Testimony submitted successfully", testimony_to_dict(testimony), new_token=auth.new_token)

@router.get("/{testimony_id}")
async def get_testimony(
    testimony_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_user)
):
    try:
        testimony = TestimonyService.get_testimony(db, testimony_id, auth.user)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Testimony retrieved successfully", testimony, new_token=auth.new_token)

@router.put("/{testimony_id}")
async def update_testimony(
    testimony_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        testimony = TestimonyService.update_testimony(db, auth.user, testimony_id, payload)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Testimony updated successfully", testimony_to_dict(testimony), new_token=auth.new_token)

@router.delete("/{testimony_id}")
async def delete_testimony(
    testimony_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        TestimonyService.delete_testimony(db, auth.user, testimony_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Testimony deleted successfully", new_token=auth.new_token)

@router.post("/{testimony_id}/like")
async def toggle_like(
    testimony_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Like the testimony, or unlike it if already liked"""
    try:
        testimony, message = TestimonyService.toggle_like(db, auth.user, testimony_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message, testimony, new_token=auth.new_token)
