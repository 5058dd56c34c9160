"""
Google account linking: consent URL, code exchange, session issue and logout.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx

from companion.clients.google_auth import (
    GoogleIdentityError,
    GoogleOAuthClient,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from companion.clients.youtube import YouTubeClient
from companion.core.errors import AuthorizationFailed, DecryptionError
from companion.models.audit import AuditEventKind
from companion.models.user import User
from companion.repositories import CredentialStore, UserRepository
from companion.services.audit import AuditLogger
from companion.services.session_tokens import SessionTokenService
from companion.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


@dataclass
class AuthorizationResult:
    user: User
    session_token: str
    redirect_to: Optional[str] = None


class AuthorizationService:
    """Link a Google account to an application user and manage its lifetime."""

    def __init__(
        self,
        *,
        oauth_client: GoogleOAuthClient,
        state_encoder: OAuthStateEncoder,
        users: UserRepository,
        credentials: CredentialStore,
        token_cipher: TokenCipherService,
        sessions: SessionTokenService,
        youtube: YouTubeClient,
        audit: AuditLogger,
        frontend_base_url: Optional[str] = None,
    ) -> None:
        self._oauth = oauth_client
        self._frontend_origin = _origin(frontend_base_url) if frontend_base_url else None
        self._state = state_encoder
        self._users = users
        self._credentials = credentials
        self._cipher = token_cipher
        self._sessions = sessions
        self._youtube = youtube
        self._audit = audit

    def begin_authorization(self, redirect_to: Optional[str] = None) -> str:
        """Return the Google consent URL carrying a signed state value.

        ``redirect_to`` must be a relative path or live on the front-end origin.
        """
        if redirect_to and not self._is_allowed_redirect(redirect_to):
            raise AuthorizationFailed("Redirect target is not allowed.")
        state = self._state.encode({"nonce": uuid.uuid4().hex, "redirect_to": redirect_to})
        return self._oauth.build_authorization_url(state=state)

    async def complete_authorization(
        self, code: str, state: Optional[str] = None
    ) -> AuthorizationResult:
        """Exchange ``code``, persist the sealed credential and issue a session.

        Raises ``AuthorizationFailed`` when the state is invalid, the exchange
        is rejected or the identity lookup fails.
        """
        redirect_to: Optional[str] = None
        if state is not None:
            redirect_to = self._state.decode(state).get("redirect_to")
        if not code:
            raise AuthorizationFailed("No authorization code provided.")

        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except OAuthTokenExchangeError as exc:
            logger.warning("Authorization code exchange failed: %s", exc)
            raise AuthorizationFailed("Failed to exchange authorization code.") from exc

        try:
            profile = await self._oauth.fetch_profile(grant.access_token)
        except GoogleIdentityError as exc:
            logger.warning("Google identity lookup failed: %s", exc)
            raise AuthorizationFailed("Failed to get user information from Google.") from exc

        channel_id = await self._lookup_channel_id(grant.access_token)
        user = await self._users.upsert_profile(profile, channel_id=channel_id)

        fields: dict[str, object] = {
            "access_secret_encrypted": self._cipher.seal(grant.access_token),
            "access_expires_at": grant.expires_at,
            "scope": grant.scope,
        }
        # Google omits the refresh token on repeat consent; keep the stored one.
        if grant.refresh_token:
            fields["refresh_secret_encrypted"] = self._cipher.seal(grant.refresh_token)
        else:
            logger.warning("No refresh token issued for user %s", user.id)
        await self._credentials.upsert(user.id, **fields)

        self._audit.record(
            AuditEventKind.LOGIN,
            user.id,
            {"email": user.email, "channel_id": user.channel_id},
        )
        return AuthorizationResult(
            user=user,
            session_token=self._sessions.issue(user),
            redirect_to=redirect_to,
        )

    def _is_allowed_redirect(self, target: str) -> bool:
        parts = urlsplit(target)
        if not parts.scheme and not parts.netloc:
            return target.startswith("/") and not target.startswith("/\\")
        return self._frontend_origin is not None and _origin(target) == self._frontend_origin

    async def authenticate(self, token: str) -> User:
        return await self._sessions.authenticate(token)

    async def deauthorize(self, user_id: str) -> None:
        """Revoke the Google grant when possible and always drop the credential."""
        credential = await self._credentials.get(user_id)
        if credential is not None:
            token = self._revocable_token(user_id, credential.refresh_secret_encrypted)
            if not token:
                token = self._revocable_token(user_id, credential.access_secret_encrypted)
            if token:
                try:
                    await self._oauth.revoke_token(token)
                except httpx.HTTPError as exc:
                    logger.warning("Token revocation failed for user %s: %r", user_id, exc)
            await self._credentials.delete(user_id)

        self._audit.record(AuditEventKind.LOGOUT, user_id, {})

    def _revocable_token(self, user_id: str, envelope: str) -> str:
        if not envelope:
            return ""
        try:
            return self._cipher.open(envelope)
        except DecryptionError:
            logger.warning("Stored secret for user %s could not be decrypted", user_id)
            return ""

    async def _lookup_channel_id(self, access_token: str) -> Optional[str]:
        try:
            channel = await self._youtube.get_my_channel(access_token)
        except Exception as exc:
            logger.warning("Could not look up YouTube channel: %r", exc)
            return None
        return channel.get("id") if channel else None


def _origin(url: str) -> tuple[str, str]:
    parts = urlsplit(url)
    return parts.scheme.lower(), parts.netloc.lower()


__all__ = ["AuthorizationResult", "AuthorizationService"]
