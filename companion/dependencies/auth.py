"""
Resolve the signed-in user from the session token on a request.
"""

from typing import Annotated, Any, Optional

from fastapi import Depends, Request

from companion.core.errors import NotAuthorized
from companion.models.user import User

from .clients import get_authorization_service

SESSION_COOKIE = "token"


def session_token_from_request(request: Request) -> Optional[str]:
    """Read the token from ``Authorization: Bearer`` first, then the cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE) or None


async def get_current_user(
    request: Request,
    service: Annotated[Any, Depends(get_authorization_service)],
) -> User:
    token = session_token_from_request(request)
    if not token:
        raise NotAuthorized("No token provided.")
    return await service.authenticate(token)


CurrentUser = Annotated[User, Depends(get_current_user)]

__all__ = ["CurrentUser", "SESSION_COOKIE", "get_current_user", "session_token_from_request"]
