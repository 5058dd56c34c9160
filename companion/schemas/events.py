"""Response models for the event log endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from companion.models.audit import AuditEvent, AuditEventKind


class EventRecord(BaseModel):
    id: str
    kind: AuditEventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_event(cls, event: AuditEvent) -> "EventRecord":
        return cls(
            id=event.id,
            kind=event.kind,
            payload=event.payload,
            created_at=event.created_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class EventPage(BaseModel):
    events: list[EventRecord] = Field(default_factory=list)
    pagination: Pagination


class EventKindCount(BaseModel):
    kind: AuditEventKind
    count: int


__all__ = ["EventKindCount", "EventPage", "EventRecord", "Pagination"]
