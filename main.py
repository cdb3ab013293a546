"""
Rhapsody Crusades - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from crusades.core.config import settings
from crusades.core.db import engine, Base
from crusades.api import (
    routes_admin,
    routes_auth,
    routes_events,
    routes_notifications,
    routes_public,
    routes_testimonies,
    routes_user,
)
from crusades.utils.responses import error_response, validation_error_response

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Rhapsody Crusades",
    description="Event registration, ticketing and community backend for Rhapsody Crusades",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-new-token"],
)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(str(exc.detail), status_code=exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        # ("body", "email") -> "email"; keep the first message per field
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(location) or "body", error.get("msg", "Invalid value"))
    return validation_error_response(errors)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response("Internal server error", status_code=500)

# Include routers
app.include_router(routes_public.router, prefix=API_PREFIX, tags=["public"])
app.include_router(routes_auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
app.include_router(routes_events.router, prefix=f"{API_PREFIX}/events", tags=["events"])
app.include_router(routes_user.router, prefix=f"{API_PREFIX}/user", tags=["user"])
app.include_router(routes_testimonies.router, prefix=f"{API_PREFIX}/testimonies", tags=["testimonies"])
app.include_router(routes_notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["notifications"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {"name": "Rhapsody Crusades API", "version": "1.0.0", "docs": "/docs"}

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
