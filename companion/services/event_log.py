"""
Read side of the audit trail: a user's own events, paged and filtered.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from companion.core.errors import InvalidRequest
from companion.models.audit import AuditEventKind
from companion.repositories import AuditRepository
from companion.schemas.events import EventKindCount, EventPage, EventRecord, Pagination


class EventLogService:
    """Serve the audit trail back to the user it belongs to."""

    def __init__(self, repository: AuditRepository) -> None:
        self._repository = repository

    async def list_events(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 50,
        kind: Optional[AuditEventKind] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> EventPage:
        if page < 1 or limit < 1:
            raise InvalidRequest("page and limit must be positive.")
        if start is not None and end is not None and start > end:
            raise InvalidRequest("start_date must not be after end_date.")

        events = await self._repository.list_for_user(
            user_id,
            kind=kind,
            start=start,
            end=end,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = await self._repository.count_for_user(user_id, kind=kind, start=start, end=end)
        return EventPage(
            events=[EventRecord.from_event(event) for event in events],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    async def stats(self, user_id: str) -> list[EventKindCount]:
        counts = await self._repository.count_by_kind(user_id)
        return [EventKindCount(kind=kind, count=count) for kind, count in counts.items()]


__all__ = ["EventLogService"]
