"""
Signed-in user routes: profile, tickets and check-in
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from crusades.api.deps import optional_user, require_user
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.services.account_service import AccountService
from crusades.services.auth import AuthContext
from crusades.services.checkin_service import CheckInService
from crusades.services.external_feed import ExternalFeedClient, get_feed_client
from crusades.services.qr_service import QRService
from crusades.services.registration_service import RegistrationService
from crusades.services.staff_service import StaffService
from crusades.utils.responses import service_error_response, success_response, unauthorized_error

router = APIRouter()

@router.get("/profile")
async def get_profile(auth: AuthContext = Depends(require_user)):
    return success_response("Profile retrieved successfully", AccountService.profile(auth.user), new_token=auth.new_token)

@router.put("/profile")
async def update_profile(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    try:
        profile = AccountService.update_profile(db, auth.user, payload)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Profile updated successfully", profile, new_token=auth.new_token)

@router.get("/stats")
async def get_stats(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    return success_response("Stats retrieved successfully", AccountService.stats(db, auth.user), new_token=auth.new_token)

@router.get("/staff-events")
async def get_staff_events(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Events where the caller is staff"""
    events = StaffService.staff_events(db, auth.user)
    return success_response("Staff events retrieved successfully", events, new_token=auth.new_token)

@router.get("/lookup")
async def lookup_user(
    qr_code: Optional[str] = None,
    qr: Optional[str] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Find the holder of a scanned ticket code"""
    try:
        holder = AccountService.lookup_by_ticket_code(db, qr_code or qr)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("User found", holder, new_token=auth.new_token)

@router.get("/tickets")
async def list_tickets(
    db: Session = Depends(get_db),
    feed: ExternalFeedClient = Depends(get_feed_client),
    auth: AuthContext = Depends(require_user)
):
    tickets = RegistrationService.tickets_for_user(db, feed, auth.user)
    return success_response("Tickets retrieved successfully", tickets, new_token=auth.new_token)

@router.get("/tickets/{ticket_ref}")
async def get_ticket(
    ticket_ref: str,
    verify: bool = False,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_user)
):
    """Ticket by id or code; verify mode is for scanning staff and needs a token"""
    if verify and auth.user is None:
        unauthorized_error("No token provided")
    try:
        ticket = RegistrationService.get_ticket(db, ticket_ref, auth.user, verify=verify)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Ticket retrieved successfully", ticket, new_token=auth.new_token)

@router.get("/tickets/{ticket_ref}/qr.png")
async def get_ticket_qr(
    ticket_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """QR image of the caller's ticket code"""
    try:
        ticket = RegistrationService.find_ticket_for_holder(db, ticket_ref, auth.user)
    except ServiceError as e:
        return service_error_response(e)

    return Response(
        content=QRService.render_ticket_code(ticket.qr_code),
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=ticket_{ticket.qr_code}.png"}
    )

@router.post("/tickets/{ticket_ref}/checkin")
async def check_in_ticket(
    ticket_ref: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user)
):
    """Check a ticket in; caller must be the event creator or staff"""
    try:
        ticket = CheckInService.check_in(db, auth.user, ticket_ref)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Check-in successful", ticket, new_token=auth.new_token)
