"""
Session token claims.
"""

from datetime import datetime

from pydantic import BaseModel


class SessionClaims(BaseModel):
    """Identity carried by a verified session token."""

    user_id: str
    email: str
    provider_subject: str
    issued_at: datetime
    expires_at: datetime


__all__ = ["SessionClaims"]
