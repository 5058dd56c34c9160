"""
Hand out valid Google access tokens, refreshing them before they expire.

Per user the credential moves through four states:

* ``FRESH``: the access token outlives the refresh buffer and is returned as is.
* ``STALE``: the access token is inside the buffer (or already expired).
* ``REFRESHING``: a refresh exchange for that user is in flight.
* ``INVALID``: no refresh token is stored; only a new consent can recover.

At most one refresh exchange runs per user. Concurrent callers that find the
credential stale await the in-flight exchange and receive its result or its
exception. The exchange runs as its own task, so cancelling a waiting request
does not cancel the exchange other waiters depend on.

The coalescing map is process-local. Several worker processes sharing one
database can still refresh the same user concurrently; guarding against that
needs a lock held in the database around the exchange.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from companion.core.errors import NotAuthorized, ReauthorizationRequired
from companion.models.audit import AuditEventKind
from companion.models.oauth import StoredCredential, TokenGrant
from companion.services.audit import AuditLogger
from companion.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER = timedelta(minutes=5)


class CredentialState(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"
    INVALID = "invalid"


class TokenRefresher(Protocol):
    async def refresh_token(self, refresh_token: str) -> TokenGrant: ...


class CredentialRepository(Protocol):
    async def get(self, user_id: str) -> Optional[StoredCredential]: ...

    async def upsert(self, user_id: str, **fields: object) -> None: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefreshManager:
    """Return usable access tokens and coalesce refreshes per user."""

    def __init__(
        self,
        *,
        credentials: CredentialRepository,
        oauth_client: TokenRefresher,
        token_cipher: TokenCipherService,
        audit: AuditLogger,
        buffer: timedelta = DEFAULT_REFRESH_BUFFER,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._credentials = credentials
        self._oauth = oauth_client
        self._cipher = token_cipher
        self._audit = audit
        self._buffer = buffer
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task[str]] = {}

    def assess(self, credential: StoredCredential) -> CredentialState:
        """Classify a stored credential without decrypting anything."""
        if credential.user_id in self._in_flight:
            return CredentialState.REFRESHING
        if self._is_fresh(credential):
            return CredentialState.FRESH
        if not credential.refresh_secret_encrypted:
            return CredentialState.INVALID
        return CredentialState.STALE

    def refreshing(self, user_id: str) -> bool:
        return user_id in self._in_flight

    async def get_valid_access_secret(self, user_id: str) -> str:
        """Return a decrypted access token that is valid beyond the buffer window.

        Raises ``NotAuthorized`` when the user never linked an account,
        ``ReauthorizationRequired`` when no refresh token is stored and
        ``RefreshFailed`` when Google rejects the exchange.
        """
        credential = await self._credentials.get(user_id)
        if credential is None:
            raise NotAuthorized(f"No OAuth token stored for user {user_id}.")

        if self._is_fresh(credential):
            return self._cipher.open(credential.access_secret_encrypted)

        task = self._in_flight.get(user_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._refresh(user_id))
            self._in_flight[user_id] = task
            task.add_done_callback(lambda _done: self._release(user_id, task))
        return await asyncio.shield(task)

    def _release(self, user_id: str, task: asyncio.Task[str]) -> None:
        if self._in_flight.get(user_id) is task:
            del self._in_flight[user_id]
        if not task.cancelled():
            # Retrieving the exception keeps an exchange whose waiters were all
            # cancelled from being reported as "exception never retrieved".
            task.exception()

    def _is_fresh(self, credential: StoredCredential) -> bool:
        expires_at = credential.access_expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at - self._clock() > self._buffer

    async def _refresh(self, user_id: str) -> str:
        # Re-read inside the exchange: a caller holding a row loaded before
        # another refresh was persisted must not refresh a second time.
        credential = await self._credentials.get(user_id)
        if credential is None:
            raise NotAuthorized(f"No OAuth token stored for user {user_id}.")
        if self._is_fresh(credential):
            return self._cipher.open(credential.access_secret_encrypted)

        refresh_secret = (
            self._cipher.open(credential.refresh_secret_encrypted)
            if credential.refresh_secret_encrypted
            else ""
        )
        if not refresh_secret:
            logger.warning(
                "Stored credential for user %s has no refresh token; reauthorization required.",
                user_id,
            )
            raise ReauthorizationRequired()

        logger.info("Refreshing Google access token for user %s", user_id)
        try:
            grant = await self._oauth.refresh_token(refresh_secret)
        except Exception as exc:
            logger.warning(
                "Token refresh failed for user %s: %s",
                user_id,
                exc.__class__.__name__,
            )
            raise

        fields: dict[str, object] = {
            "access_secret_encrypted": self._cipher.seal(grant.access_token),
            "access_expires_at": grant.expires_at,
        }
        if grant.scope:
            fields["scope"] = grant.scope
        if grant.refresh_token:
            fields["refresh_secret_encrypted"] = self._cipher.seal(grant.refresh_token)
        await self._credentials.upsert(user_id, **fields)

        self._audit.record(
            AuditEventKind.TOKEN_REFRESHED,
            user_id,
            {
                "expires_at": grant.expires_at.isoformat(),
                "refresh_token_rotated": bool(grant.refresh_token),
            },
        )
        logger.info("Refreshed Google access token for user %s", user_id)
        return grant.access_token


__all__ = ["CredentialState", "DEFAULT_REFRESH_BUFFER", "RefreshManager"]
