"""
Event catalog, registration and event staff routes
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from crusades.api.deps import optional_user, require_user
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.schemas.event import EventQuery
from crusades.services.auth import AuthContext
from crusades.services.catalog_service import CatalogService
from crusades.services.excel_service import ExcelService
from crusades.services.external_feed import ExternalFeedClient, get_feed_client
from crusades.services.registration_service import RegistrationService
from crusades.services.serializers import event_to_dict
from crusades.services.staff_service import StaffService
from crusades.utils.responses import (
    created_response,
    paginated_response,
    service_error_response,
    success_response,
)

router = APIRouter()

@router.get("")
async def list_events(
    search: Optional[str] = None,
    category: Optional[str] = None,
    upcoming: bool = False,
    featured: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    feed: ExternalFeedClient = Depends(get_feed_client),
    auth: AuthContext = Depends(optional_user)
):
    """Local events merged with the external crusade feed"""
    query = EventQuery(search=search, category=category, upcoming=upcoming, featured=featured, page=page, limit=limit)
    events, total = CatalogService.list_events(db, feed, query, viewer_id=auth.user_id)
    return paginated_response(events, total, page, limit, "Events retrieved successfully", new_token=auth.new_token)

@router.post("")
async def create_event(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        event = CatalogService.create_event(db, auth.user, payload)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Event created successfully", event_to_dict(event), new_token=auth.new_token)

@router.get("/my-crusades")
async def my_crusades(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Events created by the caller"""
    events = CatalogService.events_created_by(db, auth.user)
    return success_response("Your crusades retrieved successfully", events, new_token=auth.new_token)

@router.get("/{event_id}")
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    feed: ExternalFeedClient = Depends(get_feed_client),
    auth: AuthContext = Depends(optional_user)
):
    try:
        event = CatalogService.get_event(db, feed, event_id, viewer_id=auth.user_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Event retrieved successfully", event, new_token=auth.new_token)

@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        CatalogService.delete_event(db, auth.user, event_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Event deleted successfully", new_token=auth.new_token)

@router.post("/{event_id}/register")
async def register_for_event(
    event_id: int,
    db: Session = Depends(get_db),
    feed: ExternalFeedClient = Depends(get_feed_client),
    auth: AuthContext = Depends(require_user)
):
    """Issue the caller a ticket for the event"""
    try:
        ticket = RegistrationService.register(db, feed, auth.user, event_id)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Successfully registered for event", ticket, new_token=auth.new_token)

@router.get("/{event_id}/attendees")
async def list_attendees(
    event_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        attendees, total = StaffService.attendees(db, auth.user, event_id, page, limit)
    except ServiceError as e:
        return service_error_response(e)
    return paginated_response(attendees, total, page, limit, "Attendees retrieved successfully", new_token=auth.new_token)

@router.get("/{event_id}/attendees.xlsx")
async def export_attendees(
    event_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Download the attendee list as a spreadsheet"""
    try:
        event, rows = StaffService.export_event(db, auth.user, event_id)
    except ServiceError as e:
        return service_error_response(e)

    return Response(
        content=ExcelService.export_attendees(event, rows),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={ExcelService.export_filename(event)}"}
    )

@router.get("/{event_id}/staff")
async def list_staff(
    event_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        staff = StaffService.list_staff(db, auth.user, event_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Staff retrieved successfully", staff, new_token=auth.new_token)

@router.post("/{event_id}/staff")
async def add_staff(
    event_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        staff = StaffService.add_staff(db, auth.user, event_id, payload)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Staff member added successfully", staff, new_token=auth.new_token)

@router.delete("/{event_id}/staff/{staff_id}")
async def remove_staff(
    event_id: int,
    staff_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        StaffService.remove_staff(db, auth.user, event_id, staff_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Staff member removed successfully", new_token=auth.new_token)
