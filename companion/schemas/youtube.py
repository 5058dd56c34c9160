"""
Pydantic models for video, comment and AI suggestion payloads.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VideoDetails(BaseModel):
    """Video metadata and statistics as shown on the dashboard."""

    video_id: str
    channel_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    published_at: Optional[datetime] = None
    privacy_status: str = "unlisted"


class VideoSummary(BaseModel):
    """Entry of the user's uploads list."""

    video_id: Optional[str] = None
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    privacy_status: Optional[str] = None


class VideoMetadataUpdate(BaseModel):
    """Fields a user may change on a video; omitted fields are kept."""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)


class Comment(BaseModel):
    id: str
    author_display_name: str = "Unknown"
    author_profile_image_url: str = ""
    author_channel_id: str = ""
    text_display: str = ""
    text_original: str = ""
    like_count: int = 0
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    can_delete: bool = False


class CommentThread(BaseModel):
    id: str
    top_level_comment: Comment
    total_reply_count: int = 0
    replies: list[Comment] = Field(default_factory=list)


class CommentPage(BaseModel):
    comments: list[CommentThread] = Field(default_factory=list)
    next_page_token: Optional[str] = None
    user_channel_id: Optional[str] = None


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=10000)


class TitleSuggestionRequest(BaseModel):
    current_title: str = Field(..., min_length=1)
    description: str = ""
    video_id: Optional[str] = None


class TitleSuggestion(BaseModel):
    title: str
    reason: str = ""


__all__ = [
    "Comment",
    "CommentCreate",
    "CommentPage",
    "CommentThread",
    "TitleSuggestion",
    "TitleSuggestionRequest",
    "VideoDetails",
    "VideoMetadataUpdate",
    "VideoSummary",
]
