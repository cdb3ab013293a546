"""
Resolve the bearer token of an inbound request to a stored user
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from crusades.core.errors import AuthenticationError
from crusades.models import User
from crusades.services.token_service import TokenClaims, TokenService

BEARER_PREFIX = "Bearer "


@dataclass
class AuthContext:
    user: Optional[User] = None
    claims: Optional[TokenClaims] = None
    new_token: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def resolve(
    db: Session,
    authorization: Optional[str],
    tokens: TokenService,
    required: bool = True,
) -> AuthContext:
    """Map an Authorization header to an AuthContext.

    A missing header is anonymous in optional mode and an error in required
    mode. A malformed or expired token, or one whose user no longer exists,
    is an error in both modes.
    """
    token = extract_bearer(authorization)
    if token is None:
        if required:
            raise AuthenticationError("No token provided")
        return AuthContext()

    claims = tokens.verify(token)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.get(User, claims.user_id)
    if user is None:
        raise AuthenticationError("User not found")

    return AuthContext(user=user, claims=claims, new_token=tokens.refresh_if_needed(token))
