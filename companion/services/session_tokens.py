"""Issue and verify the application's own session tokens.

Tokens are HS256 JWTs. Validity depends only on signature and expiry: there is
no server-side revocation list, so logging out discards the client copy but a
previously issued token stays usable until it expires.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

import jwt

from companion.core.errors import (
    ConfigurationError,
    Expired,
    InvalidSignature,
    Malformed,
    NotAuthorized,
)
from companion.models.session import SessionClaims
from companion.models.user import User

ALGORITHM = "HS256"
DEFAULT_SESSION_TTL = timedelta(days=7)
_REQUIRED_CLAIMS = ("sub", "email", "provider_subject", "iat", "exp")


class UserLookup(Protocol):
    async def get(self, user_id: str) -> Optional[User]: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenService:
    """Mint and validate bearer tokens for authenticated users."""

    def __init__(
        self,
        *,
        secret: Optional[str],
        users: UserLookup,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT_SECRET not configured.")
        self._secret = secret
        self._users = users
        self._ttl = ttl
        self._clock = clock

    def issue(self, user: User) -> str:
        issued_at = self._clock()
        payload = {
            "sub": user.id,
            "email": user.email,
            "provider_subject": user.provider_subject,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """Check signature and expiry and return the embedded identity."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": list(_REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise Expired() from exc
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignature() from exc
        except jwt.InvalidTokenError as exc:
            raise Malformed() from exc

        try:
            return SessionClaims(
                user_id=str(claims["sub"]),
                email=str(claims["email"]),
                provider_subject=str(claims["provider_subject"]),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (TypeError, ValueError, OverflowError) as exc:
            raise Malformed() from exc

    async def authenticate(self, token: str) -> User:
        """Verify ``token`` and resolve the user it was issued for."""
        claims = self.verify(token)
        user = await self._users.get(claims.user_id)
        if user is None:
            raise NotAuthorized("User not found.")
        return user


__all__ = ["ALGORITHM", "DEFAULT_SESSION_TTL", "SessionTokenService"]
