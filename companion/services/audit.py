"""Fire-and-forget audit logging."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from companion.models.audit import AuditEvent, AuditEventKind

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    async def append(
        self,
        kind: AuditEventKind,
        user_id: Optional[str],
        payload: dict[str, Any],
    ) -> AuditEvent: ...


class AuditLogger:
    """Schedule audit writes without letting their outcome reach the caller.

    ``record`` returns immediately; the write runs as a background task whose
    failures are logged locally and dropped. ``drain`` waits for pending
    writes, for shutdown and tests.
    """

    def __init__(self, sink: AuditSink) -> None:
        self._sink = sink
        self._pending: set[asyncio.Task[None]] = set()

    def record(
        self,
        kind: AuditEventKind,
        user_id: Optional[str],
        payload: Optional[dict[str, Any]] = None,
    ) -> None:
        task = asyncio.get_running_loop().create_task(
            self._write(kind, user_id, dict(payload or {}))
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _write(
        self,
        kind: AuditEventKind,
        user_id: Optional[str],
        payload: dict[str, Any],
    ) -> None:
        try:
            await self._sink.append(kind, user_id, payload)
        except Exception:  # noqa: BLE001 - audit failures never reach callers
            logger.warning(
                "Failed to record audit event kind=%s user_id=%s",
                kind.value,
                user_id,
                exc_info=True,
            )


__all__ = ["AuditLogger", "AuditSink"]
