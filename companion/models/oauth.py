"""
Domain models for provider credential persistence.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StoredCredential(BaseModel):
    """Represents the single credential row kept for each user."""

    user_id: str
    access_secret_encrypted: str
    refresh_secret_encrypted: str = Field(
        "", description="Sealed refresh secret; an empty seal means no refresh secret."
    )
    access_expires_at: datetime
    scope: Optional[str] = None
    updated_at: datetime


class TokenGrant(BaseModel):
    """Token payload returned by a code exchange or a refresh exchange."""

    access_token: str
    refresh_token: Optional[str] = Field(
        None,
        description="Only present when the provider issues (or rotates) one.",
    )
    expires_at: datetime
    scope: Optional[str] = None


__all__ = ["StoredCredential", "TokenGrant"]
