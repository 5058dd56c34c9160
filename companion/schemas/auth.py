"""Schemas related to OAuth flows and sessions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from companion.models.user import User


class OAuthCallbackPayload(BaseModel):
    """Payload sent to complete the OAuth callback exchange."""

    code: str = Field(..., description="Authorization code returned by Google OAuth.")
    state: Optional[str] = Field(
        None, description="Opaque state token issued when starting OAuth."
    )


class AuthorizationUrlResponse(BaseModel):
    authorization_url: str


class UserProfile(BaseModel):
    """Public view of a user; never includes credential material."""

    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    channel_id: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            avatar_url=user.avatar_url,
            channel_id=user.channel_id,
        )


class SessionResponse(BaseModel):
    token: str
    user: UserProfile
    redirect_to: Optional[str] = None


__all__ = [
    "AuthorizationUrlResponse",
    "OAuthCallbackPayload",
    "SessionResponse",
    "UserProfile",
]
