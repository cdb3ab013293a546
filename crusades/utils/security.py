"""
Security utilities: passwords, random codes, and admin sessions
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
import jwt
from fastapi import Cookie, HTTPException, status

from crusades.core.config import settings

ADMIN_SESSION_COOKIE = "admin_session"
RESET_TOKEN_ALPHABET = string.ascii_lowercase + string.digits

def hash_password(password: str) -> str:
    """Hash a password with bcrypt"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False

def generate_ticket_code() -> str:
    """12 lowercase hex characters printed in the ticket QR code"""
    return secrets.token_hex(6)

def generate_reset_token(length: int = 64) -> str:
    return "".join(secrets.choice(RESET_TOKEN_ALPHABET) for _ in range(length))

def generate_random_password() -> str:
    return secrets.token_urlsafe(16)

# -------- Admin session --------

def create_admin_session(admin, now: Optional[datetime] = None) -> str:
    """Sign the admin session cookie value"""
    now = now or datetime.now(timezone.utc)
    payload = {
        "adminId": admin.id,
        "username": admin.username,
        "name": admin.name,
        "role": admin.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.ADMIN_SESSION_HOURS)).timestamp()),
    }
    return jwt.encode(payload, settings.ADMIN_SESSION_SECRET, algorithm="HS256")

def read_admin_session(token: Optional[str]) -> Optional[Dict]:
    if not token:
        return None
    try:
        return jwt.decode(token, settings.ADMIN_SESSION_SECRET, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None

def verify_admin_session(admin_session: Optional[str] = Cookie(None)) -> Dict:
    """Verify the admin session cookie"""
    session = read_admin_session(admin_session)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin session required"
        )
    return session

