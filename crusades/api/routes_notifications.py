"""
Notification inbox routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crusades.api.deps import require_user
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.schemas.requests import MarkReadRequest
from crusades.services.auth import AuthContext
from crusades.services.notification_service import NotificationService
from crusades.utils.responses import (
    pagination_meta,
    service_error_response,
    success_response,
    validation_error_response,
)

router = APIRouter()

@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Personal and broadcast notifications, newest first"""
    items, total, unread_count = NotificationService.list_for_user(db, auth.user_id, page, limit)
    return success_response(
        "Notifications retrieved successfully",
        {
            "notifications": items,
            "unread_count": unread_count,
            "pagination": pagination_meta(total, page, limit).model_dump(),
        },
        new_token=auth.new_token
    )

@router.post("/read")
async def mark_read(
    body: MarkReadRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    if not body.notification_id:
        return validation_error_response({"notification_id": "Notification ID is required"})
    try:
        NotificationService.mark_read(db, auth.user_id, body.notification_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Notification marked as read", new_token=auth.new_token)

@router.post("/read-all")
async def mark_all_read(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    marked = NotificationService.mark_all_read(db, auth.user_id)
    return success_response("All notifications marked as read", {"marked": marked}, new_token=auth.new_token)
