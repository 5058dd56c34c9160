"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timezone

import pytest

from companion.clients.sqlite_store import SQLiteStore
from companion.models.user import GoogleProfile
from companion.repositories import AuditRepository, CredentialStore, UserRepository
from companion.services.audit import AuditLogger
from companion.services.token_cipher import TokenCipherService


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def store(tmp_path) -> SQLiteStore:
    return SQLiteStore(tmp_path / "companion.sqlite3")


@pytest.fixture
def users(store: SQLiteStore) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def credentials(store: SQLiteStore) -> CredentialStore:
    return CredentialStore(store)


@pytest.fixture
def audit_repository(store: SQLiteStore) -> AuditRepository:
    return AuditRepository(store)


@pytest.fixture
def audit(audit_repository: AuditRepository) -> AuditLogger:
    return AuditLogger(audit_repository)


@pytest.fixture
def cipher() -> TokenCipherService:
    return TokenCipherService(key_hex=_bootstrap.TEST_ENCRYPTION_KEY)


@pytest.fixture
def profile() -> GoogleProfile:
    return GoogleProfile(
        subject="google-sub-1",
        email="creator@example.com",
        name="Creator",
        picture="https://example.com/avatar.png",
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
