"""
User identity models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GoogleProfile(BaseModel):
    """Identity fields returned by the Google userinfo endpoint."""

    subject: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class User(BaseModel):
    """Application user linked to exactly one Google account."""

    id: str
    provider_subject: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    channel_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


__all__ = ["GoogleProfile", "User"]
