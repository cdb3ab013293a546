"""
Account routes: sign-up, login, password reset and KingsChat login
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from crusades.api.deps import get_token_service
from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.services.account_service import AccountService
from crusades.services.token_service import TokenService
from crusades.utils.responses import created_response, service_error_response, success_response

router = APIRouter()

@router.post("/register")
async def register(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Create an account and sign in"""
    try:
        data = AccountService.register(db, payload, tokens)
    except ServiceError as e:
        return service_error_response(e)
    return created_response("Registration successful", data)

@router.post("/login")
async def login(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    try:
        data = AccountService.login(db, payload, tokens)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Login successful", data)

@router.post("/forgot-password")
async def forgot_password(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db)
):
    try:
        data = AccountService.forgot_password(db, payload)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Password reset requested", data)

@router.post("/reset-password")
async def reset_password(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db)
):
    try:
        data = AccountService.reset_password(db, payload)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Password reset successful", data)

@router.post("/kingschat")
async def kingschat_login(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Sign in with a KingsChat access token"""
    try:
        data = AccountService.kingschat_login(db, payload, tokens)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("KingsChat authentication successful", data)
