try:
    from . import _bootstrap  # noqa: F401
    from .fakes import FakeOAuthClient, FakeYouTube
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from fakes import FakeOAuthClient, FakeYouTube  # type: ignore

import json
from datetime import datetime, timedelta, timezone

import httplib2
import pytest
import pytest_asyncio
from googleapiclient.errors import HttpError

from companion.core.errors import (
    InvalidRequest,
    NotAuthorized,
    PermissionDenied,
    QuotaExceeded,
    ReauthorizationRequired,
    ResourceNotFound,
    UpstreamError,
)
from companion.models.audit import AuditEventKind
from companion.services.provider_adapter import ProviderAdapter, ProviderOperation
from companion.services.refresh_manager import RefreshManager


def _http_error(status: int, reason: str | None = None) -> HttpError:
    body: dict = {"error": {"code": status, "message": "no"}}
    if reason:
        body["error"]["errors"] = [{"reason": reason}]
    return HttpError(httplib2.Response({"status": status}), json.dumps(body).encode())


@pytest.fixture
def youtube() -> FakeYouTube:
    return FakeYouTube(channel_id="UC-mine")


@pytest.fixture
def oauth() -> FakeOAuthClient:
    return FakeOAuthClient()


@pytest_asyncio.fixture
async def user(users, credentials, cipher, profile):
    created = await users.upsert_profile(profile, channel_id="UC-mine")
    await credentials.upsert(
        created.id,
        access_secret_encrypted=cipher.seal("A1"),
        refresh_secret_encrypted=cipher.seal("R1"),
        access_expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    return created


@pytest.fixture
def adapter(youtube, oauth, users, credentials, cipher, audit) -> ProviderAdapter:
    manager = RefreshManager(
        credentials=credentials, oauth_client=oauth, token_cipher=cipher, audit=audit
    )
    return ProviderAdapter(
        refresh_manager=manager,
        youtube=youtube,
        users=users,
        credentials=credentials,
        audit=audit,
    )


async def _kinds(audit, audit_repository, user_id: str) -> list[AuditEventKind]:
    await audit.drain()
    return [event.kind for event in await audit_repository.list_for_user(user_id)]


@pytest.mark.asyncio
async def test_get_video_maps_details_and_audits(
    adapter, youtube, user, audit, audit_repository
) -> None:
    youtube.videos["vid-1"] = {
        "id": "vid-1",
        "snippet": {
            "title": "Hello",
            "channelId": "UC-mine",
            "publishedAt": "2024-01-02T03:04:05Z",
            "thumbnails": {"high": {"url": "https://img/high.jpg"}},
        },
        "statistics": {"viewCount": "12", "likeCount": "3"},
        "status": {"privacyStatus": "public"},
    }

    video = await adapter.call_provider(user.id, ProviderOperation.GET_VIDEO, {"video_id": "vid-1"})

    assert video.title == "Hello"
    assert video.view_count == 12
    assert video.comment_count == 0
    assert video.thumbnail_url == "https://img/high.jpg"
    assert video.privacy_status == "public"
    assert youtube.tokens == ["A1"]
    assert await _kinds(audit, audit_repository, user.id) == [AuditEventKind.FETCH_VIDEO]


@pytest.mark.asyncio
async def test_missing_video_is_resource_not_found(adapter, user, audit, audit_repository) -> None:
    with pytest.raises(ResourceNotFound):
        await adapter.call_provider(user.id, "get_video", {"video_id": "missing"})

    assert await _kinds(audit, audit_repository, user.id) == []


@pytest.mark.asyncio
async def test_delete_comment_owned_by_someone_else_is_denied(adapter, youtube, user) -> None:
    youtube.comments["c-1"] = {
        "id": "c-1",
        "snippet": {"authorChannelId": {"value": "UC-someone-else"}},
    }

    with pytest.raises(PermissionDenied):
        await adapter.call_provider(user.id, ProviderOperation.DELETE_COMMENT, {"comment_id": "c-1"})

    assert not youtube.called("delete_comment")


@pytest.mark.asyncio
async def test_delete_own_comment(adapter, youtube, user, audit, audit_repository) -> None:
    youtube.comments["c-1"] = {"id": "c-1", "snippet": {"authorChannelId": {"value": "UC-mine"}}}

    await adapter.call_provider(user.id, ProviderOperation.DELETE_COMMENT, {"comment_id": "c-1"})

    assert youtube.called("delete_comment")
    assert await _kinds(audit, audit_repository, user.id) == [AuditEventKind.COMMENT_DELETED]


@pytest.mark.asyncio
async def test_missing_channel_id_is_looked_up_and_cached(
    adapter, youtube, users, credentials, cipher
) -> None:
    from companion.models.user import GoogleProfile

    created = await users.upsert_profile(GoogleProfile(subject="sub-2", email="two@example.com"))
    await credentials.upsert(
        created.id,
        access_secret_encrypted=cipher.seal("A1"),
        refresh_secret_encrypted=cipher.seal("R1"),
        access_expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    youtube.comments["c-1"] = {"id": "c-1", "snippet": {"authorChannelId": {"value": "UC-mine"}}}

    await adapter.call_provider(created.id, ProviderOperation.DELETE_COMMENT, {"comment_id": "c-1"})

    assert youtube.called("get_my_channel")
    assert (await users.get(created.id)).channel_id == "UC-mine"


@pytest.mark.asyncio
async def test_update_video_of_other_channel_is_denied(adapter, youtube, user) -> None:
    youtube.videos["vid-1"] = {"id": "vid-1", "snippet": {"title": "x", "channelId": "UC-other"}}

    with pytest.raises(PermissionDenied):
        await adapter.call_provider(
            user.id,
            ProviderOperation.UPDATE_VIDEO_METADATA,
            {"video_id": "vid-1", "title": "New"},
        )

    assert not youtube.called("update_video_snippet")


@pytest.mark.asyncio
async def test_update_video_keeps_unchanged_fields(adapter, youtube, user, audit, audit_repository) -> None:
    youtube.videos["vid-1"] = {
        "id": "vid-1",
        "snippet": {
            "title": "Old",
            "description": "Keep me",
            "categoryId": "22",
            "channelId": "UC-mine",
        },
    }

    video = await adapter.call_provider(
        user.id,
        ProviderOperation.UPDATE_VIDEO_METADATA,
        {"video_id": "vid-1", "title": "New"},
    )

    _, (video_id, snippet) = [call for call in youtube.calls if call[0] == "update_video_snippet"][0]
    assert snippet == {"title": "New", "description": "Keep me", "categoryId": "22"}
    assert video.title == "New"
    assert video.description == "Keep me"
    assert await _kinds(audit, audit_repository, user.id) == [AuditEventKind.UPDATE_VIDEO_METADATA]


@pytest.mark.asyncio
async def test_list_comments_flags_deletable_comments(adapter, youtube, user) -> None:
    youtube.threads = {
        "nextPageToken": "page-2",
        "items": [
            {
                "id": "t-1",
                "snippet": {
                    "totalReplyCount": 1,
                    "topLevelComment": {
                        "id": "c-1",
                        "snippet": {"textDisplay": "mine", "authorChannelId": {"value": "UC-mine"}},
                    },
                },
                "replies": {
                    "comments": [
                        {"id": "c-2", "snippet": {"authorChannelId": {"value": "UC-other"}}}
                    ]
                },
            }
        ],
    }

    page = await adapter.call_provider(user.id, ProviderOperation.LIST_COMMENTS, {"video_id": "vid-1"})

    assert page.next_page_token == "page-2"
    assert page.user_channel_id == "UC-mine"
    thread = page.comments[0]
    assert thread.top_level_comment.can_delete is True
    assert thread.replies[0].can_delete is False


@pytest.mark.asyncio
async def test_list_my_videos_reads_uploads_playlist(adapter, youtube, user) -> None:
    youtube.uploads = [
        {"snippet": {"title": "One", "resourceId": {"videoId": "v1"}}, "status": {"privacyStatus": "public"}},
        {"snippet": {"title": "Two", "resourceId": {"videoId": "v2"}}},
    ]

    videos = await adapter.call_provider(user.id, ProviderOperation.LIST_MY_VIDEOS, {"max_results": 5})

    assert [video.video_id for video in videos] == ["v1", "v2"]
    assert ("list_playlist_items", ("UU-mine", 5)) in youtube.calls


@pytest.mark.asyncio
async def test_add_comment_and_reply(adapter, youtube, user, audit, audit_repository) -> None:
    thread = await adapter.call_provider(
        user.id, ProviderOperation.ADD_COMMENT, {"video_id": "vid-1", "text": "Great"}
    )
    reply = await adapter.call_provider(
        user.id, ProviderOperation.REPLY_TO_COMMENT, {"parent_id": "c-1", "text": "Thanks"}
    )

    assert thread.top_level_comment.text_display == "Great"
    assert thread.top_level_comment.can_delete
    assert reply.text_original == "Thanks"
    assert reply.author_display_name == "You"
    assert set(await _kinds(audit, audit_repository, user.id)) == {
        AuditEventKind.COMMENT_ADDED,
        AuditEventKind.REPLY_ADDED,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (_http_error(403, "quotaExceeded"), QuotaExceeded),
        (_http_error(403, "forbidden"), PermissionDenied),
        (_http_error(500), UpstreamError),
        (TimeoutError("timed out"), UpstreamError),
    ],
)
async def test_provider_failures_are_classified(adapter, youtube, user, error, expected) -> None:
    youtube.errors["get_video"] = error

    with pytest.raises(expected) as excinfo:
        await adapter.call_provider(user.id, ProviderOperation.GET_VIDEO, {"video_id": "v"})

    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
async def test_provider_401_expires_access_but_keeps_refresh(
    adapter, youtube, user, credentials, cipher
) -> None:
    youtube.errors["get_video"] = _http_error(401)

    with pytest.raises(ReauthorizationRequired):
        await adapter.call_provider(user.id, ProviderOperation.GET_VIDEO, {"video_id": "v"})

    stored = await credentials.get(user.id)
    assert stored.access_expires_at < datetime.now(timezone.utc)
    assert cipher.open(stored.refresh_secret_encrypted) == "R1"


@pytest.mark.asyncio
async def test_stale_token_is_refreshed_before_the_call(adapter, youtube, oauth, user, credentials) -> None:
    await credentials.expire_access(user.id)
    youtube.videos["v"] = {"snippet": {"title": "t"}}

    await adapter.call_provider(user.id, ProviderOperation.GET_VIDEO, {"video_id": "v"})

    assert oauth.refresh_calls == ["R1"]
    assert youtube.tokens == ["A2"]


@pytest.mark.asyncio
async def test_unknown_user_is_not_authorized(adapter) -> None:
    with pytest.raises(NotAuthorized):
        await adapter.call_provider("ghost", ProviderOperation.GET_MY_CHANNEL)


@pytest.mark.asyncio
async def test_missing_parameters_are_rejected(adapter, user, youtube) -> None:
    with pytest.raises(InvalidRequest) as excinfo:
        await adapter.call_provider(user.id, ProviderOperation.ADD_COMMENT, {"video_id": "v"})

    assert excinfo.value.status_code == 400
    assert "text" in excinfo.value.message
    assert youtube.calls == []


@pytest.mark.asyncio
async def test_unknown_operation_is_rejected(adapter, user, youtube) -> None:
    with pytest.raises(InvalidRequest):
        await adapter.call_provider(user.id, "rename_channel")

    assert youtube.calls == []
