"""Append-only storage for audit events."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Optional

from companion.clients.sqlite_store import SQLiteStore
from companion.models.audit import AuditEvent, AuditEventKind
from companion.repositories.common import from_iso, to_iso, utc_now


class AuditRepository:
    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def append(
        self,
        kind: AuditEventKind,
        user_id: Optional[str],
        payload: dict[str, Any],
    ) -> AuditEvent:
        return await asyncio.to_thread(self._append, kind, user_id, payload)

    async def list_for_user(
        self,
        user_id: str,
        *,
        kind: Optional[AuditEventKind] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEvent]:
        """Return a user's events newest first; ``start`` and ``end`` are inclusive."""
        where, params = _user_filter(user_id, kind, start, end)
        return await asyncio.to_thread(self._list, where, params, limit, offset)

    async def count_for_user(
        self,
        user_id: str,
        *,
        kind: Optional[AuditEventKind] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        where, params = _user_filter(user_id, kind, start, end)
        return await asyncio.to_thread(self._count, where, params)

    async def count_by_kind(self, user_id: str) -> dict[AuditEventKind, int]:
        return await asyncio.to_thread(self._count_by_kind, user_id)

    def _append(
        self,
        kind: AuditEventKind,
        user_id: Optional[str],
        payload: dict[str, Any],
    ) -> AuditEvent:
        event = AuditEvent(
            id=f"evt_{uuid.uuid4().hex}",
            kind=kind,
            user_id=user_id,
            payload=payload,
            created_at=utc_now(),
        )
        with self._store.connection() as conn:
            conn.execute(
                """
                INSERT INTO audit_events (id, kind, user_id, payload_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.kind.value,
                    event.user_id,
                    json.dumps(payload, sort_keys=True, default=str),
                    to_iso(event.created_at),
                ),
            )
        return event

    def _list(self, where: str, params: list[Any], limit: int, offset: int) -> list[AuditEvent]:
        query = (
            f"SELECT * FROM audit_events WHERE {where} "
            "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        )
        with self._store.connection() as conn:
            rows = conn.execute(query, [*params, limit, offset]).fetchall()
        return [_row_to_event(row) for row in rows]

    def _count(self, where: str, params: list[Any]) -> int:
        with self._store.connection() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS total FROM audit_events WHERE {where}", params
            ).fetchone()
        return int(row["total"])

    def _count_by_kind(self, user_id: str) -> dict[AuditEventKind, int]:
        with self._store.connection() as conn:
            rows = conn.execute(
                """
                SELECT kind, COUNT(*) AS total FROM audit_events
                WHERE user_id = ? GROUP BY kind ORDER BY kind
                """,
                (user_id,),
            ).fetchall()
        return {AuditEventKind(row["kind"]): int(row["total"]) for row in rows}


def _user_filter(
    user_id: str,
    kind: Optional[AuditEventKind],
    start: Optional[datetime],
    end: Optional[datetime],
) -> tuple[str, list[Any]]:
    # Timestamps are stored as UTC ISO strings, so text comparison orders them.
    clauses = ["user_id = ?"]
    params: list[Any] = [user_id]
    if kind is not None:
        clauses.append("kind = ?")
        params.append(kind.value)
    if start is not None:
        clauses.append("created_at >= ?")
        params.append(to_iso(start))
    if end is not None:
        clauses.append("created_at <= ?")
        params.append(to_iso(end))
    return " AND ".join(clauses), params


def _row_to_event(row: sqlite3.Row) -> AuditEvent:
    return AuditEvent(
        id=row["id"],
        kind=AuditEventKind(row["kind"]),
        user_id=row["user_id"],
        payload=json.loads(row["payload_json"]),
        created_at=from_iso(row["created_at"]),
    )


__all__ = ["AuditRepository"]
