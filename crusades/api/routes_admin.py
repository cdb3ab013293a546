"""
Admin API routes - requires the admin session cookie
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from crusades.core.config import settings
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.schemas.requests import AdminLoginRequest, ModerationRequest
from crusades.services.admin_service import AdminService
from crusades.services.serializers import admin_to_dict
from crusades.utils.security import ADMIN_SESSION_COOKIE, create_admin_session, verify_admin_session
from crusades.utils.responses import created_response, service_error_response, success_response

router = APIRouter()

@router.post("/login")
async def admin_login(body: AdminLoginRequest, db: Session = Depends(get_db)):
    """Start an admin session; the signed session is set as an HttpOnly cookie"""
    try:
        admin = AdminService.login(db, body.username, body.password)
    except ServiceError as e:
        return service_error_response(e)

    response = success_response("Login successful", admin_to_dict(admin))
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        create_admin_session(admin),
        max_age=settings.ADMIN_SESSION_HOURS * 60 * 60,
        httponly=True,
        secure=settings.BASE_URL.startswith("https://"),
        samesite="lax",
        path="/",
    )
    return response

@router.post("/logout")
async def admin_logout():
    response = success_response("Logged out")
    response.delete_cookie(ADMIN_SESSION_COOKIE, path="/")
    return response

@router.get("/me")
async def admin_me(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        admin = AdminService.me(db, session)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Admin retrieved successfully", admin)

@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    return success_response("Dashboard retrieved successfully", AdminService.dashboard(db))

# -------- Users --------

@router.get("/users")
async def list_users(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    return success_response("Users retrieved successfully", AdminService.list_users(db, search))

@router.post("/users")
async def create_user(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        user = AdminService.create_user(db, payload)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("User created successfully", user)

@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        user = AdminService.update_user(db, user_id, payload)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("User updated successfully", user)

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    """Delete a user along with their tickets and testimonies"""
    try:
        AdminService.delete_user(db, user_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("User deleted successfully")

# -------- Events and tickets --------

@router.get("/events")
async def list_events(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    return success_response("Events retrieved successfully", AdminService.list_events(db))

@router.get("/tickets")
async def list_tickets(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    """Latest 100 tickets"""
    return success_response("Tickets retrieved successfully", AdminService.list_tickets(db))

# -------- Testimonies --------

@router.get("/testimonies")
async def list_testimonies(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    return success_response("Testimonies retrieved successfully", AdminService.list_testimonies(db))

@router.post("/testimonies/{testimony_id}/status")
async def moderate_testimony(
    testimony_id: str,
    body: ModerationRequest,
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        testimony = AdminService.set_testimony_status(db, testimony_id, body.action)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(f"Testimony {testimony['status']}", testimony)

# -------- Categories --------

@router.get("/testimony-categories")
async def list_categories(
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    return success_response("Categories retrieved successfully", AdminService.list_categories(db))

@router.post("/testimony-categories")
async def create_category(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        category = AdminService.create_category(db, payload)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Category created successfully", category)

@router.delete("/testimony-categories/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    try:
        AdminService.delete_category(db, category_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Category deleted successfully")

@router.post("/testimony-categories/{category_id}/toggle")
async def toggle_category(
    category_id: int,
    db: Session = Depends(get_db),
    session: dict = Depends(verify_admin_session)
):
    """Show or hide a category in the app"""
    try:
        category = AdminService.toggle_category(db, category_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Category updated successfully", category)
