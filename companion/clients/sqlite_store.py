"""SQLite database holding users, provider credentials and audit events."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    provider_subject TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL,
    name TEXT NULL,
    avatar_url TEXT NULL,
    channel_id TEXT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS oauth_credentials (
    user_id TEXT PRIMARY KEY,
    access_secret_encrypted TEXT NOT NULL,
    refresh_secret_encrypted TEXT NOT NULL DEFAULT '',
    access_expires_at TEXT NOT NULL,
    scope TEXT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS audit_events (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    user_id TEXT NULL,
    payload_json TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_events_user_created
ON audit_events(user_id, created_at DESC);
"""


class SQLiteStore:
    """Owns the database file and hands out short-lived connections."""

    def __init__(self, db_path: str, *, busy_timeout: float = 30.0) -> None:
        self._db_path = Path(db_path)
        self._busy_timeout = busy_timeout
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._db_path, timeout=self._busy_timeout, check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and is always closed."""
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connection() as conn:
            conn.executescript(SCHEMA_SQL)


__all__ = ["SCHEMA_SQL", "SQLiteStore"]
