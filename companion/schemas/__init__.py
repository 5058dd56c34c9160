"""Public schema exports."""

from .auth import (
    AuthorizationUrlResponse,
    OAuthCallbackPayload,
    SessionResponse,
    UserProfile,
)
from .events import EventKindCount, EventPage, EventRecord, Pagination
from .youtube import (
    Comment,
    CommentCreate,
    CommentPage,
    CommentThread,
    TitleSuggestion,
    TitleSuggestionRequest,
    VideoDetails,
    VideoMetadataUpdate,
    VideoSummary,
)

__all__ = [
    "AuthorizationUrlResponse",
    "Comment",
    "CommentCreate",
    "CommentPage",
    "CommentThread",
    "EventKindCount",
    "EventPage",
    "EventRecord",
    "OAuthCallbackPayload",
    "Pagination",
    "SessionResponse",
    "TitleSuggestion",
    "TitleSuggestionRequest",
    "UserProfile",
    "VideoDetails",
    "VideoMetadataUpdate",
    "VideoSummary",
]
