"""In-memory stand-ins for Google clients and stores used across tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from companion.models.oauth import StoredCredential, TokenGrant
from companion.models.user import GoogleProfile


class InMemoryCredentials:
    """Credential repository without thread hops, so scheduling is deterministic."""

    def __init__(self) -> None:
        self.rows: dict[str, StoredCredential] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []

    async def get(self, user_id: str) -> Optional[StoredCredential]:
        return self.rows.get(user_id)

    async def upsert(self, user_id: str, **fields: Any) -> None:
        self.writes.append((user_id, fields))
        current = self.rows.get(user_id)
        base = current.model_dump() if current else {
            "user_id": user_id,
            "access_secret_encrypted": "",
            "refresh_secret_encrypted": "",
            "access_expires_at": datetime(1970, 1, 1, tzinfo=timezone.utc),
        }
        base.update(fields)
        base["updated_at"] = datetime.now(timezone.utc)
        self.rows[user_id] = StoredCredential(**base)

    async def expire_access(self, user_id: str) -> None:
        await self.upsert(
            user_id, access_expires_at=datetime(1970, 1, 1, tzinfo=timezone.utc)
        )


class FakeOAuthClient:
    """Scripted token endpoint; ``gate`` holds refresh exchanges until set."""

    def __init__(
        self,
        *,
        grant: Optional[TokenGrant] = None,
        refresh_grant: Optional[TokenGrant] = None,
        refresh_error: Optional[BaseException] = None,
        profile: Optional[GoogleProfile] = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        self.grant = grant or TokenGrant(
            access_token="A1",
            refresh_token="R1",
            expires_at=now + timedelta(hours=1),
            scope="openid email",
        )
        self.refresh_grant = refresh_grant or TokenGrant(
            access_token="A2", expires_at=now + timedelta(hours=1)
        )
        self.refresh_error = refresh_error
        self.profile = profile or GoogleProfile(
            subject="google-sub-1", email="creator@example.com", name="Creator"
        )
        self.gate: Optional[asyncio.Event] = None
        self.codes: list[str] = []
        self.states: list[str] = []
        self.refresh_calls: list[str] = []
        self.revoked: list[str] = []
        self.revoke_error: Optional[BaseException] = None

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://accounts.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        self.codes.append(code)
        return self.grant

    async def fetch_profile(self, access_token: str) -> GoogleProfile:
        return self.profile

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_grant

    async def revoke_token(self, token: str) -> None:
        self.revoked.append(token)
        if self.revoke_error is not None:
            raise self.revoke_error


class FakeYouTube:
    """Records every call; responses are plain dicts shaped like the Data API's."""

    def __init__(self, *, channel_id: Optional[str] = "UC-mine") -> None:
        self.channel_id = channel_id
        self.calls: list[tuple[str, tuple]] = []
        self.videos: dict[str, dict] = {}
        self.comments: dict[str, dict] = {}
        self.uploads: list[dict] = []
        self.threads: dict = {"items": []}
        self.errors: dict[str, BaseException] = {}
        self.tokens: list[str] = []

    def _record(self, name: str, access_token: str, *args: Any) -> None:
        self.calls.append((name, args))
        self.tokens.append(access_token)
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)

    async def get_video(self, access_token: str, video_id: str):
        self._record("get_video", access_token, video_id)
        return self.videos.get(video_id)

    async def update_video_snippet(self, access_token: str, video_id: str, snippet: dict):
        self._record("update_video_snippet", access_token, video_id, snippet)
        return {"id": video_id, "snippet": snippet}

    async def get_my_channel(self, access_token: str):
        self._record("get_my_channel", access_token)
        if self.channel_id is None:
            return None
        return {
            "id": self.channel_id,
            "contentDetails": {"relatedPlaylists": {"uploads": "UU-mine"}},
        }

    async def list_playlist_items(self, access_token: str, playlist_id: str, max_results: int):
        self._record("list_playlist_items", access_token, playlist_id, max_results)
        return self.uploads[:max_results]

    async def list_comment_threads(self, access_token: str, video_id: str, *, page_token=None, max_results=20):
        self._record("list_comment_threads", access_token, video_id, page_token, max_results)
        return self.threads

    async def insert_comment_thread(self, access_token: str, video_id: str, text: str):
        self._record("insert_comment_thread", access_token, video_id, text)
        return {
            "id": "thread-new",
            "snippet": {
                "topLevelComment": {
                    "id": "comment-new",
                    "snippet": {
                        "textDisplay": text,
                        "authorChannelId": {"value": self.channel_id},
                    },
                }
            },
        }

    async def insert_reply(self, access_token: str, parent_id: str, text: str):
        self._record("insert_reply", access_token, parent_id, text)
        return {"id": "reply-new", "snippet": {"textDisplay": text, "parentId": parent_id}}

    async def get_comment(self, access_token: str, comment_id: str):
        self._record("get_comment", access_token, comment_id)
        return self.comments.get(comment_id)

    async def delete_comment(self, access_token: str, comment_id: str) -> None:
        self._record("delete_comment", access_token, comment_id)
