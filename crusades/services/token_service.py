"""
Signed identity tokens for API clients.

Tokens are HS256 JWTs carrying ``userId`` and ``email`` plus issuer, audience
and expiry claims. Verification failures of any kind collapse to ``None`` so
callers cannot tell a bad signature from an expired token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from crusades.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    email: str


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    expires_at: datetime


class TokenService:
    """Issues, verifies and refreshes identity tokens"""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        expiry_days: int = 30,
        refresh_window_days: int = 7,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.expiry = timedelta(days=expiry_days)
        self.refresh_window = timedelta(days=refresh_window_days)

    @classmethod
    def from_settings(cls) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            expiry_days=settings.JWT_EXPIRY_DAYS,
            refresh_window_days=settings.JWT_REFRESH_WINDOW_DAYS,
        )

    def issue(self, identity: TokenIdentity, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "userId": identity.user_id,
            "email": identity.email,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.expiry).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str, now: Optional[datetime] = None) -> Optional[TokenClaims]:
        """Return the token's claims, or None when it is not acceptable"""
        now = now or datetime.now(timezone.utc)
        try:
            # Expiry is checked below against the injectable clock
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"verify_exp": False, "require": ["exp", "iss", "aud"]},
            )
        except jwt.PyJWTError as e:
            logger.debug(f"Token rejected: {e}")
            return None

        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return None

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return None
        if expires_at <= now:
            return None

        return TokenClaims(user_id=user_id, email=email, expires_at=expires_at)

    def refresh_if_needed(self, token: str, now: Optional[datetime] = None) -> Optional[str]:
        """Issue a replacement when the token has less than the refresh window left"""
        now = now or datetime.now(timezone.utc)
        claims = self.verify(token, now=now)
        if claims is None:
            return None
        if claims.expires_at - now < self.refresh_window:
            return self.issue(TokenIdentity(claims.user_id, claims.email), now=now)
        return None

    def expires_in(self) -> int:
        """Token lifetime in seconds, reported to clients at login"""
        return int(self.expiry.total_seconds())


token_service = TokenService.from_settings()
