"""
Public API routes - no authentication required
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from crusades.core.db import get_db
from crusades.core.errors import ServiceError
from crusades.services.account_service import kingschat_callback_page
from crusades.services.testimony_service import CategoryService
from crusades.utils.responses import service_error_response, success_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/testimony-categories")
async def list_categories(db: Session = Depends(get_db)):
    """Active testimony categories in display order"""
    return success_response("Categories retrieved successfully", CategoryService.list_active(db))

@router.get("/testimony-categories/{ref}")
async def get_category(ref: str, db: Session = Depends(get_db)):
    """Category by numeric id or slug"""
    try:
        category = CategoryService.get_category(db, ref)
    except ServiceError as e:
        return service_error_response(e)
    return success_response("Category retrieved successfully", category)

@router.get("/auth/kingschat-callback", response_class=HTMLResponse)
async def kingschat_callback(accessToken: Optional[str] = None, refreshToken: Optional[str] = None):
    """Bounce KingsChat OAuth tokens back into the mobile app"""
    return HTMLResponse(kingschat_callback_page(accessToken, refreshToken))
