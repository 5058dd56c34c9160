"""
Audit event models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditEventKind(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    TOKEN_REFRESHED = "token_refreshed"
    FETCH_VIDEO = "fetch_video"
    UPDATE_VIDEO_METADATA = "update_video_metadata"
    LIST_VIDEOS = "list_videos"
    LIST_COMMENTS = "list_comments"
    COMMENT_ADDED = "comment_added"
    REPLY_ADDED = "reply_added"
    COMMENT_DELETED = "comment_deleted"
    AI_TITLE_SUGGESTION = "ai_title_suggestion"


class AuditEvent(BaseModel):
    """Immutable record of a significant action."""

    id: str
    kind: AuditEventKind
    user_id: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = {"frozen": True}


__all__ = ["AuditEvent", "AuditEventKind"]
