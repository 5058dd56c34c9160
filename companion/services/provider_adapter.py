"""
Single entry point for every YouTube operation performed on a user's behalf.

``ProviderAdapter.call_provider`` obtains a valid access token, runs the named
operation, routes any failure through the error classifier and records one
audit event per successful logical operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from companion.clients.youtube import YouTubeClient
from companion.core.errors import (
    CompanionError,
    InvalidRequest,
    NotAuthorized,
    PermissionDenied,
    ReauthorizationRequired,
    ResourceNotFound,
)
from companion.models.audit import AuditEventKind
from companion.models.user import User
from companion.repositories import CredentialStore, UserRepository
from companion.schemas.youtube import (
    Comment,
    CommentPage,
    CommentThread,
    VideoDetails,
    VideoSummary,
)
from companion.services.audit import AuditLogger
from companion.services.error_classifier import ErrorClassifier
from companion.services.refresh_manager import RefreshManager

logger = logging.getLogger(__name__)


class ProviderOperation(str, Enum):
    GET_VIDEO = "get_video"
    UPDATE_VIDEO_METADATA = "update_video_metadata"
    LIST_MY_VIDEOS = "list_my_videos"
    LIST_COMMENTS = "list_comments"
    ADD_COMMENT = "add_comment"
    REPLY_TO_COMMENT = "reply_to_comment"
    DELETE_COMMENT = "delete_comment"
    GET_MY_CHANNEL = "get_my_channel"


_REQUIRED_PARAMS: dict[ProviderOperation, tuple[str, ...]] = {
    ProviderOperation.GET_VIDEO: ("video_id",),
    ProviderOperation.UPDATE_VIDEO_METADATA: ("video_id",),
    ProviderOperation.LIST_MY_VIDEOS: (),
    ProviderOperation.LIST_COMMENTS: ("video_id",),
    ProviderOperation.ADD_COMMENT: ("video_id", "text"),
    ProviderOperation.REPLY_TO_COMMENT: ("parent_id", "text"),
    ProviderOperation.DELETE_COMMENT: ("comment_id",),
    ProviderOperation.GET_MY_CHANNEL: (),
}


@dataclass
class _Outcome:
    result: Any
    event: Optional[AuditEventKind] = None
    payload: dict[str, Any] = field(default_factory=dict)


_Handler = Callable[[str, User, dict[str, Any]], Awaitable[_Outcome]]


class ProviderAdapter:
    """Run YouTube operations with token refresh, error mapping and auditing."""

    def __init__(
        self,
        *,
        refresh_manager: RefreshManager,
        youtube: YouTubeClient,
        users: UserRepository,
        credentials: CredentialStore,
        audit: AuditLogger,
        classifier: Optional[ErrorClassifier] = None,
    ) -> None:
        self._refresh = refresh_manager
        self._youtube = youtube
        self._users = users
        self._credentials = credentials
        self._audit = audit
        self._classifier = classifier or ErrorClassifier()
        self._handlers: dict[ProviderOperation, _Handler] = {
            ProviderOperation.GET_VIDEO: self._get_video,
            ProviderOperation.UPDATE_VIDEO_METADATA: self._update_video_metadata,
            ProviderOperation.LIST_MY_VIDEOS: self._list_my_videos,
            ProviderOperation.LIST_COMMENTS: self._list_comments,
            ProviderOperation.ADD_COMMENT: self._add_comment,
            ProviderOperation.REPLY_TO_COMMENT: self._reply_to_comment,
            ProviderOperation.DELETE_COMMENT: self._delete_comment,
            ProviderOperation.GET_MY_CHANNEL: self._get_my_channel,
        }

    async def call_provider(
        self,
        user_id: str,
        operation: ProviderOperation | str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            operation = ProviderOperation(operation)
        except ValueError as exc:
            raise InvalidRequest(f"Unknown provider operation: {operation}") from exc
        params = dict(params or {})
        missing = [name for name in _REQUIRED_PARAMS[operation] if params.get(name) in (None, "")]
        if missing:
            raise InvalidRequest(f"{operation.value} requires parameters: {', '.join(missing)}")

        user = await self._users.get(user_id)
        if user is None:
            raise NotAuthorized("User not found.")

        try:
            access_token = await self._refresh.get_valid_access_secret(user_id)
        except Exception as exc:
            error = self._classifier.classify(exc)
            if error is exc:
                raise
            raise error from exc

        try:
            outcome = await self._handlers[operation](access_token, user, params)
        except Exception as exc:
            error = self._classifier.classify(exc)
            if isinstance(error, ReauthorizationRequired) and not isinstance(exc, CompanionError):
                # Google rejected the token; force a refresh on the next call.
                await self._credentials.expire_access(user_id)
            logger.info(
                "YouTube %s failed for user %s: %s", operation.value, user_id, error.kind
            )
            if error is exc:
                raise
            raise error from exc

        if outcome.event is not None:
            self._audit.record(outcome.event, user_id, outcome.payload)
        return outcome.result

    async def _channel_id(self, access_token: str, user: User) -> Optional[str]:
        """Return the user's channel id, looking it up once and caching it."""
        if user.channel_id:
            return user.channel_id
        channel = await self._youtube.get_my_channel(access_token)
        channel_id = channel.get("id") if channel else None
        if channel_id:
            await self._users.set_channel_id(user.id, channel_id)
            user.channel_id = channel_id
        return channel_id

    async def _get_video(self, access_token: str, user: User, params: dict[str, Any]) -> _Outcome:
        video_id = params["video_id"]
        video = await self._youtube.get_video(access_token, video_id)
        if video is None:
            raise ResourceNotFound("Video not found or you do not have access to it.")
        details = _video_details(video_id, video)
        return _Outcome(
            details,
            AuditEventKind.FETCH_VIDEO,
            {"video_id": video_id, "title": details.title},
        )

    async def _update_video_metadata(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        video_id = params["video_id"]
        title = params.get("title")
        description = params.get("description")

        video = await self._youtube.get_video(access_token, video_id)
        if video is None:
            raise ResourceNotFound("Video not found.")
        snippet = video.get("snippet") or {}
        owner = snippet.get("channelId")
        channel_id = await self._channel_id(access_token, user)
        if owner and owner != channel_id:
            raise PermissionDenied("You can only edit your own videos.")

        new_snippet = {
            "title": title or snippet.get("title"),
            "description": description if description is not None else snippet.get("description"),
            "categoryId": snippet.get("categoryId"),
        }
        updated = await self._youtube.update_video_snippet(access_token, video_id, new_snippet)

        merged = {**video, "snippet": {**snippet, **(updated.get("snippet") or new_snippet)}}
        updated_fields = [name for name in ("title", "description") if params.get(name) is not None]
        return _Outcome(
            _video_details(video_id, merged),
            AuditEventKind.UPDATE_VIDEO_METADATA,
            {
                "video_id": video_id,
                "updated_fields": updated_fields,
                "new_title": title,
                "new_description": description[:100] if description else None,
            },
        )

    async def _list_my_videos(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        max_results = int(params.get("max_results") or 10)
        channel = await self._youtube.get_my_channel(access_token)
        uploads = (
            ((channel or {}).get("contentDetails") or {})
            .get("relatedPlaylists", {})
            .get("uploads")
        )
        if not uploads:
            return _Outcome([], AuditEventKind.LIST_VIDEOS, {"count": 0})

        items = await self._youtube.list_playlist_items(access_token, uploads, max_results)
        videos = [_video_summary(item) for item in items]
        return _Outcome(videos, AuditEventKind.LIST_VIDEOS, {"count": len(videos)})

    async def _list_comments(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        video_id = params["video_id"]
        channel_id = await self._channel_id(access_token, user)
        response = await self._youtube.list_comment_threads(
            access_token,
            video_id,
            page_token=params.get("page_token"),
            max_results=int(params.get("max_results") or 20),
        )
        threads = [_comment_thread(item, channel_id) for item in response.get("items") or []]
        page = CommentPage(
            comments=threads,
            next_page_token=response.get("nextPageToken"),
            user_channel_id=channel_id,
        )
        return _Outcome(
            page,
            AuditEventKind.LIST_COMMENTS,
            {"video_id": video_id, "count": len(threads)},
        )

    async def _add_comment(self, access_token: str, user: User, params: dict[str, Any]) -> _Outcome:
        video_id, text = params["video_id"], params["text"]
        thread = await self._youtube.insert_comment_thread(access_token, video_id, text)
        result = _comment_thread(thread, user.channel_id, default_author="You", fallback_text=text)
        result.top_level_comment.can_delete = True
        return _Outcome(
            result,
            AuditEventKind.COMMENT_ADDED,
            {"video_id": video_id, "comment_id": thread.get("id"), "text_preview": text[:100]},
        )

    async def _reply_to_comment(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        parent_id, text = params["parent_id"], params["text"]
        reply = await self._youtube.insert_reply(access_token, parent_id, text)
        result = _comment(reply, user.channel_id, default_author="You", fallback_text=text)
        result.can_delete = True
        return _Outcome(
            result,
            AuditEventKind.REPLY_ADDED,
            {"parent_comment_id": parent_id, "reply_id": reply.get("id"), "text_preview": text[:100]},
        )

    async def _delete_comment(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        comment_id = params["comment_id"]
        comment = await self._youtube.get_comment(access_token, comment_id)
        if comment is None:
            raise ResourceNotFound("Comment not found.")

        owner = ((comment.get("snippet") or {}).get("authorChannelId") or {}).get("value")
        channel_id = await self._channel_id(access_token, user)
        if not owner or owner != channel_id:
            raise PermissionDenied("You can only delete your own comments.")

        await self._youtube.delete_comment(access_token, comment_id)
        return _Outcome(None, AuditEventKind.COMMENT_DELETED, {"comment_id": comment_id})

    async def _get_my_channel(
        self, access_token: str, user: User, params: dict[str, Any]
    ) -> _Outcome:
        channel = await self._youtube.get_my_channel(access_token)
        if channel is None:
            raise ResourceNotFound("No YouTube channel is linked to this account.")
        if channel.get("id") and channel["id"] != user.channel_id:
            await self._users.set_channel_id(user.id, channel["id"])
        return _Outcome(channel)


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _thumbnail(snippet: dict, *sizes: str) -> Optional[str]:
    thumbnails = snippet.get("thumbnails") or {}
    for size in sizes:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def _video_details(video_id: str, video: dict) -> VideoDetails:
    snippet = video.get("snippet") or {}
    statistics = video.get("statistics") or {}
    status = video.get("status") or {}
    return VideoDetails(
        video_id=video_id,
        channel_id=snippet.get("channelId"),
        title=snippet.get("title") or "",
        description=snippet.get("description"),
        category_id=snippet.get("categoryId"),
        thumbnail_url=_thumbnail(snippet, "high", "default"),
        view_count=_int(statistics.get("viewCount")),
        like_count=_int(statistics.get("likeCount")),
        comment_count=_int(statistics.get("commentCount")),
        published_at=_datetime(snippet.get("publishedAt")),
        privacy_status=status.get("privacyStatus") or "unlisted",
    )


def _video_summary(item: dict) -> VideoSummary:
    snippet = item.get("snippet") or {}
    return VideoSummary(
        video_id=(snippet.get("resourceId") or {}).get("videoId"),
        title=snippet.get("title"),
        thumbnail_url=_thumbnail(snippet, "default"),
        published_at=_datetime(snippet.get("publishedAt")),
        privacy_status=(item.get("status") or {}).get("privacyStatus"),
    )


def _comment(
    item: dict,
    channel_id: Optional[str],
    *,
    default_author: str = "Unknown",
    fallback_text: str = "",
) -> Comment:
    snippet = item.get("snippet") or {}
    author_channel = (snippet.get("authorChannelId") or {}).get("value") or ""
    return Comment(
        id=item.get("id") or "",
        author_display_name=snippet.get("authorDisplayName") or default_author,
        author_profile_image_url=snippet.get("authorProfileImageUrl") or "",
        author_channel_id=author_channel,
        text_display=snippet.get("textDisplay") or fallback_text,
        text_original=snippet.get("textOriginal") or fallback_text,
        like_count=_int(snippet.get("likeCount")),
        published_at=snippet.get("publishedAt"),
        updated_at=snippet.get("updatedAt"),
        can_delete=bool(channel_id) and author_channel == channel_id,
    )


def _comment_thread(
    item: dict,
    channel_id: Optional[str],
    *,
    default_author: str = "Unknown",
    fallback_text: str = "",
) -> CommentThread:
    snippet = item.get("snippet") or {}
    replies = (item.get("replies") or {}).get("comments") or []
    return CommentThread(
        id=item.get("id") or "",
        top_level_comment=_comment(
            snippet.get("topLevelComment") or {},
            channel_id,
            default_author=default_author,
            fallback_text=fallback_text,
        ),
        total_reply_count=_int(snippet.get("totalReplyCount")),
        replies=[_comment(reply, channel_id) for reply in replies],
    )


__all__ = ["ProviderAdapter", "ProviderOperation"]
