try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import pytest

from companion.models.audit import AuditEventKind
from companion.models.user import GoogleProfile


@pytest.mark.asyncio
async def test_upsert_profile_creates_then_updates_by_subject(users, profile) -> None:
    created = await users.upsert_profile(profile, channel_id="UC-1")
    renamed = GoogleProfile(subject=profile.subject, email="new@example.com", name="Renamed")

    updated = await users.upsert_profile(renamed)

    assert updated.id == created.id
    assert updated.email == "new@example.com"
    assert updated.name == "Renamed"
    assert updated.channel_id == "UC-1"
    assert updated.created_at == created.created_at


@pytest.mark.asyncio
async def test_set_channel_id(users, profile) -> None:
    created = await users.upsert_profile(profile)

    await users.set_channel_id(created.id, "UC-2")

    assert (await users.get(created.id)).channel_id == "UC-2"
    assert await users.get("missing") is None


@pytest.mark.asyncio
async def test_partial_upsert_preserves_untouched_columns(credentials) -> None:
    expires = datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)
    await credentials.upsert(
        "user-1",
        access_secret_encrypted="access-1",
        refresh_secret_encrypted="refresh-1",
        access_expires_at=expires,
        scope="openid",
    )

    await credentials.upsert(
        "user-1",
        access_secret_encrypted="access-2",
        access_expires_at=expires + timedelta(hours=1),
    )

    stored = await credentials.get("user-1")
    assert stored.access_secret_encrypted == "access-2"
    assert stored.refresh_secret_encrypted == "refresh-1"
    assert stored.scope == "openid"
    assert stored.access_expires_at == expires + timedelta(hours=1)


@pytest.mark.asyncio
async def test_upsert_rejects_unknown_columns(credentials) -> None:
    with pytest.raises(ValueError):
        await credentials.upsert("user-1", user_id="other")


@pytest.mark.asyncio
async def test_expire_access_and_delete(credentials) -> None:
    await credentials.upsert(
        "user-1",
        access_secret_encrypted="access",
        refresh_secret_encrypted="refresh",
        access_expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )

    await credentials.expire_access("user-1")
    expired = await credentials.get("user-1")
    assert expired.access_expires_at.year == 1970
    assert expired.refresh_secret_encrypted == "refresh"

    assert await credentials.delete("user-1") is True
    assert await credentials.get("user-1") is None
    assert await credentials.delete("user-1") is False


@pytest.mark.asyncio
async def test_audit_events_are_listed_newest_first(audit_repository) -> None:
    first = await audit_repository.append(AuditEventKind.LOGIN, "user-1", {"email": "a@b.c"})
    second = await audit_repository.append(AuditEventKind.FETCH_VIDEO, "user-1", {"video_id": "v"})
    await audit_repository.append(AuditEventKind.LOGIN, "user-2", {})

    events = await audit_repository.list_for_user("user-1")
    logins = await audit_repository.list_for_user("user-1", kind=AuditEventKind.LOGIN)

    assert [event.id for event in events] == [second.id, first.id]
    assert events[1].payload == {"email": "a@b.c"}
    assert [event.id for event in logins] == [first.id]
    assert first.id.startswith("evt_")


def _insert_event(store, event_id: str, kind: AuditEventKind, user_id: str, at: datetime) -> None:
    with store.connection() as conn:
        conn.execute(
            "INSERT INTO audit_events (id, kind, user_id, payload_json, created_at) "
            "VALUES (?, ?, ?, '{}', ?)",
            (event_id, kind.value, user_id, at.isoformat()),
        )


@pytest.mark.asyncio
async def test_audit_events_filter_by_inclusive_date_range(store, audit_repository, fixed_now) -> None:
    for offset, event_id in enumerate(["e0", "e1", "e2", "e3"]):
        _insert_event(
            store, event_id, AuditEventKind.FETCH_VIDEO, "user-1", fixed_now + timedelta(days=offset)
        )

    window = await audit_repository.list_for_user(
        "user-1", start=fixed_now + timedelta(days=1), end=fixed_now + timedelta(days=2)
    )
    total = await audit_repository.count_for_user(
        "user-1", start=fixed_now + timedelta(days=1), end=fixed_now + timedelta(days=2)
    )
    since = await audit_repository.count_for_user("user-1", start=fixed_now + timedelta(hours=1))

    assert [event.id for event in window] == ["e2", "e1"]
    assert total == 2
    assert since == 3


@pytest.mark.asyncio
async def test_audit_events_count_by_kind(audit_repository) -> None:
    await audit_repository.append(AuditEventKind.LOGIN, "user-1", {})
    await audit_repository.append(AuditEventKind.LOGIN, "user-1", {})
    await audit_repository.append(AuditEventKind.COMMENT_ADDED, "user-1", {})
    await audit_repository.append(AuditEventKind.LOGIN, "user-2", {})

    counts = await audit_repository.count_by_kind("user-1")

    assert counts == {AuditEventKind.LOGIN: 2, AuditEventKind.COMMENT_ADDED: 1}
    assert await audit_repository.count_by_kind("nobody") == {}
