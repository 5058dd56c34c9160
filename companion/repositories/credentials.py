"""Persistence for the per-user provider credential row."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

from companion.clients.sqlite_store import SQLiteStore
from companion.models.oauth import StoredCredential
from companion.repositories.common import from_iso, to_iso, utc_now

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UPDATABLE_COLUMNS = (
    "access_secret_encrypted",
    "refresh_secret_encrypted",
    "access_expires_at",
    "scope",
)


class CredentialStore:
    """Read and write sealed provider credentials keyed by user id.

    ``upsert`` is one ``INSERT ... ON CONFLICT DO UPDATE`` statement that only
    assigns the columns it was given, so concurrent writers of disjoint fields
    never clobber each other.
    """

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> Optional[StoredCredential]:
        return await asyncio.to_thread(self._get, user_id)

    async def upsert(self, user_id: str, **fields: Any) -> None:
        await asyncio.to_thread(self._upsert, user_id, fields)

    async def delete(self, user_id: str) -> bool:
        return await asyncio.to_thread(self._delete, user_id)

    async def expire_access(self, user_id: str) -> None:
        """Mark the stored access secret as expired without touching anything else."""
        await asyncio.to_thread(self._expire_access, user_id)

    def _get(self, user_id: str) -> Optional[StoredCredential]:
        with self._store.connection() as conn:
            row = conn.execute(
                "SELECT * FROM oauth_credentials WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_credential(row)

    def _upsert(self, user_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown credential fields: {sorted(unknown)}")
        if not fields:
            return

        values = {
            key: to_iso(value) if isinstance(value, datetime) else value
            for key, value in fields.items()
        }
        values["updated_at"] = to_iso(utc_now())
        columns = list(values)
        insert_values = dict(values)
        # A brand-new row still needs the NOT NULL columns.
        insert_values.setdefault("access_secret_encrypted", "")
        insert_values.setdefault("refresh_secret_encrypted", "")
        insert_values.setdefault("access_expires_at", to_iso(_EPOCH))
        insert_columns = list(insert_values)

        placeholders = ", ".join("?" for _ in insert_columns)
        assignments = ", ".join(f"{column} = excluded.{column}" for column in columns)
        sql = (
            f"INSERT INTO oauth_credentials (user_id, {', '.join(insert_columns)}) "
            f"VALUES (?, {placeholders}) "
            f"ON CONFLICT(user_id) DO UPDATE SET {assignments}"
        )
        with self._store.connection() as conn:
            conn.execute(sql, (user_id, *insert_values.values()))

    def _delete(self, user_id: str) -> bool:
        with self._store.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM oauth_credentials WHERE user_id = ?",
                (user_id,),
            )
        return cursor.rowcount > 0

    def _expire_access(self, user_id: str) -> None:
        with self._store.connection() as conn:
            conn.execute(
                """
                UPDATE oauth_credentials
                SET access_expires_at = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (to_iso(_EPOCH), to_iso(utc_now()), user_id),
            )


def _row_to_credential(row: sqlite3.Row) -> StoredCredential:
    return StoredCredential(
        user_id=row["user_id"],
        access_secret_encrypted=row["access_secret_encrypted"],
        refresh_secret_encrypted=row["refresh_secret_encrypted"] or "",
        access_expires_at=from_iso(row["access_expires_at"]),
        scope=row["scope"],
        updated_at=from_iso(row["updated_at"]),
    )


__all__ = ["CredentialStore"]
