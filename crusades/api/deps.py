"""
Shared route dependencies: bearer-token users and the feed client
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from crusades.core.db import get_db
from crusades.core.errors import AuthenticationError
from crusades.services import auth
from crusades.services.auth import AuthContext
from crusades.services.token_service import TokenService, token_service


def get_token_service() -> TokenService:
    return token_service


def _resolve(db: Session, authorization: Optional[str], tokens: TokenService, required: bool) -> AuthContext:
    try:
        return auth.resolve(db, authorization, tokens, required=required)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


def require_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
) -> AuthContext:
    """Signed-in caller; 401 otherwise"""
    return _resolve(db, authorization, tokens, required=True)


def optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
) -> AuthContext:
    """Caller if a token is sent; anonymous without one, 401 for a bad one"""
    return _resolve(db, authorization, tokens, required=False)
