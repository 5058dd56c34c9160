"""Persistence for application users."""

from __future__ import annotations

import asyncio
import sqlite3
import uuid
from typing import Optional

from companion.clients.sqlite_store import SQLiteStore
from companion.models.user import GoogleProfile, User
from companion.repositories.common import from_iso, to_iso, utc_now


class UserRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> Optional[User]:
        return await asyncio.to_thread(self._get, user_id)

    async def upsert_profile(
        self, profile: GoogleProfile, *, channel_id: Optional[str] = None
    ) -> User:
        """Create the user on first sign-in, otherwise refresh the profile fields.

        A ``None`` channel id keeps whatever channel id was cached before.
        """
        return await asyncio.to_thread(self._upsert_profile, profile, channel_id)

    async def set_channel_id(self, user_id: str, channel_id: str) -> None:
        await asyncio.to_thread(self._set_channel_id, user_id, channel_id)

    def _get(self, user_id: str) -> Optional[User]:
        with self._store.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def _upsert_profile(
        self, profile: GoogleProfile, channel_id: Optional[str]
    ) -> User:
        now = to_iso(utc_now())
        with self._store.connection() as conn:
            conn.execute(
                """
                INSERT INTO users
                (id, provider_subject, email, name, avatar_url, channel_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(provider_subject) DO UPDATE SET
                    email = excluded.email,
                    name = excluded.name,
                    avatar_url = excluded.avatar_url,
                    channel_id = COALESCE(excluded.channel_id, users.channel_id),
                    updated_at = excluded.updated_at
                """,
                (
                    uuid.uuid4().hex,
                    profile.subject,
                    profile.email,
                    profile.name,
                    profile.picture,
                    channel_id,
                    now,
                    now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM users WHERE provider_subject = ?",
                (profile.subject,),
            ).fetchone()
        return _row_to_user(row)

    def _set_channel_id(self, user_id: str, channel_id: str) -> None:
        with self._store.connection() as conn:
            conn.execute(
                "UPDATE users SET channel_id = ?, updated_at = ? WHERE id = ?",
                (channel_id, to_iso(utc_now()), user_id),
            )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        provider_subject=row["provider_subject"],
        email=row["email"],
        name=row["name"],
        avatar_url=row["avatar_url"],
        channel_id=row["channel_id"],
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )


__all__ = ["UserRepository"]
