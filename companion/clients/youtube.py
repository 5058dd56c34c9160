"""YouTube Data API v3 client wrapper."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build


class YouTubeClient:
    """Thin async facade over the discovery-based YouTube client.

    Every method takes the caller's access token; nothing here refreshes
    tokens or interprets errors. ``HttpError`` and socket timeouts propagate
    unchanged.
    """

    def __init__(self, *, timeout_seconds: float = 10.0) -> None:
        self._timeout = timeout_seconds

    def _service(self, access_token: str) -> Any:
        credentials = Credentials(token=access_token)
        http = google_auth_httplib2.AuthorizedHttp(
            credentials, http=httplib2.Http(timeout=self._timeout)
        )
        return build("youtube", "v3", http=http, cache_discovery=False)

    async def get_video(self, access_token: str, video_id: str) -> Optional[dict]:
        def _execute() -> Optional[dict]:
            response = (
                self._service(access_token)
                .videos()
                .list(part="snippet,statistics,status", id=video_id)
                .execute()
            )
            items = response.get("items") or []
            return items[0] if items else None

        return await asyncio.to_thread(_execute)

    async def update_video_snippet(
        self, access_token: str, video_id: str, snippet: dict
    ) -> dict:
        def _execute() -> dict:
            return (
                self._service(access_token)
                .videos()
                .update(part="snippet", body={"id": video_id, "snippet": snippet})
                .execute()
            )

        return await asyncio.to_thread(_execute)

    async def get_my_channel(self, access_token: str) -> Optional[dict]:
        def _execute() -> Optional[dict]:
            response = (
                self._service(access_token)
                .channels()
                .list(part="id,snippet,contentDetails", mine=True)
                .execute()
            )
            items = response.get("items") or []
            return items[0] if items else None

        return await asyncio.to_thread(_execute)

    async def list_playlist_items(
        self, access_token: str, playlist_id: str, max_results: int
    ) -> list[dict]:
        def _execute() -> list[dict]:
            response = (
                self._service(access_token)
                .playlistItems()
                .list(part="snippet,status", playlistId=playlist_id, maxResults=max_results)
                .execute()
            )
            return response.get("items") or []

        return await asyncio.to_thread(_execute)

    async def list_comment_threads(
        self,
        access_token: str,
        video_id: str,
        *,
        page_token: Optional[str] = None,
        max_results: int = 20,
    ) -> dict:
        def _execute() -> dict:
            params: dict[str, Any] = {
                "part": "snippet,replies",
                "videoId": video_id,
                "maxResults": max_results,
                "order": "relevance",
            }
            if page_token:
                params["pageToken"] = page_token
            return self._service(access_token).commentThreads().list(**params).execute()

        return await asyncio.to_thread(_execute)

    async def insert_comment_thread(
        self, access_token: str, video_id: str, text: str
    ) -> dict:
        def _execute() -> dict:
            body = {
                "snippet": {
                    "videoId": video_id,
                    "topLevelComment": {"snippet": {"textOriginal": text}},
                }
            }
            return (
                self._service(access_token)
                .commentThreads()
                .insert(part="snippet", body=body)
                .execute()
            )

        return await asyncio.to_thread(_execute)

    async def insert_reply(self, access_token: str, parent_id: str, text: str) -> dict:
        def _execute() -> dict:
            body = {"snippet": {"parentId": parent_id, "textOriginal": text}}
            return (
                self._service(access_token)
                .comments()
                .insert(part="snippet", body=body)
                .execute()
            )

        return await asyncio.to_thread(_execute)

    async def get_comment(self, access_token: str, comment_id: str) -> Optional[dict]:
        def _execute() -> Optional[dict]:
            response = (
                self._service(access_token)
                .comments()
                .list(part="snippet", id=comment_id)
                .execute()
            )
            items = response.get("items") or []
            return items[0] if items else None

        return await asyncio.to_thread(_execute)

    async def delete_comment(self, access_token: str, comment_id: str) -> None:
        def _execute() -> None:
            self._service(access_token).comments().delete(id=comment_id).execute()

        await asyncio.to_thread(_execute)


__all__ = ["YouTubeClient"]
