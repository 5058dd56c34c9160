"""
Google OAuth utilities.

These helpers build the consent URL and talk to the token, userinfo and
revocation endpoints. Callers never see raw response bodies; failures surface
as typed exceptions carrying the HTTP status and the OAuth error code.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from companion.core.config import GoogleSettings, OAuthSettings
from companion.core.errors import AuthorizationFailed, RefreshFailed
from companion.models.oauth import TokenGrant
from companion.models.user import GoogleProfile

logger = logging.getLogger(__name__)


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str, *, ttl_seconds: int = 900) -> None:
        self._secret_key = secret_key.encode("utf-8")
        self._ttl = timedelta(seconds=ttl_seconds)

    def encode(self, payload: Dict[str, Any]) -> str:
        body = {**payload, "issued_at": datetime.now(timezone.utc).isoformat()}
        serialized = json.dumps(body, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise AuthorizationFailed("Invalid OAuth state.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise AuthorizationFailed("Invalid OAuth state signature.")

        payload = json.loads(serialized)
        try:
            issued_at = datetime.fromisoformat(payload["issued_at"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthorizationFailed("Invalid issued_at in state token.") from exc
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - issued_at > self._ttl:
            raise AuthorizationFailed("OAuth state token has expired.")
        return payload


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint rejects an authorization code."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GoogleIdentityError(Exception):
    """Raised when the userinfo endpoint does not return a usable identity."""


class GoogleOAuthClient:
    """Build Google authorization URLs and run the token exchanges."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._oauth.provider_timeout_seconds,
            transport=self._transport,
        )

    def build_authorization_url(self, state: str) -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": "offline",
            "include_granted_scopes": "true",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access (and usually refresh) token."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": str(self._google.redirect_uri),
            "grant_type": "authorization_code",
        }
        issued_at = datetime.now(timezone.utc)
        try:
            async with self._client() as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc!r}") from exc

        if response.status_code != httpx.codes.OK:
            error_code, _ = _oauth_error(response)
            raise OAuthTokenExchangeError(
                f"Authorization code exchange failed ({error_code or 'unknown'}).",
                status_code=response.status_code,
            )

        try:
            grant = _parse_grant(response.json(), issued_at)
        except ValueError as exc:
            raise OAuthTokenExchangeError(
                "Unreadable token payload returned from Google.",
                status_code=response.status_code,
            ) from exc
        if grant is None:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")
        return grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Mint a new access token from a stored refresh token."""
        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        issued_at = datetime.now(timezone.utc)
        try:
            async with self._client() as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.TimeoutException as exc:
            raise RefreshFailed("Token refresh timed out.") from exc
        except httpx.HTTPError as exc:
            raise RefreshFailed("Token endpoint unreachable.") from exc

        if response.status_code != httpx.codes.OK:
            error_code, _ = _oauth_error(response)
            raise RefreshFailed(
                "Google rejected the refresh token exchange.",
                status_code=response.status_code,
                reason=error_code,
            )

        try:
            grant = _parse_grant(response.json(), issued_at)
        except ValueError as exc:
            raise RefreshFailed(
                "Unreadable refresh payload returned from Google.",
                status_code=response.status_code,
            ) from exc
        if grant is None:
            raise RefreshFailed(
                "Incomplete refresh payload returned from Google.",
                status_code=response.status_code,
            )
        return grant

    async def fetch_profile(self, access_token: str) -> GoogleProfile:
        """Look up the identity behind an access token."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            raise GoogleIdentityError("Userinfo endpoint unreachable.") from exc

        if response.status_code != httpx.codes.OK:
            raise GoogleIdentityError(
                f"Userinfo lookup failed with status {response.status_code}."
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise GoogleIdentityError("Unreadable userinfo payload returned from Google.") from exc
        if not isinstance(data, dict) or not data.get("id") or not data.get("email"):
            raise GoogleIdentityError("Failed to get user information from Google.")
        return GoogleProfile(
            subject=str(data["id"]),
            email=data["email"],
            name=data.get("name"),
            picture=data.get("picture"),
        )

    async def revoke_token(self, token: str) -> None:
        """Ask Google to revoke a token; raises ``httpx.HTTPError`` on failure."""
        async with self._client() as client:
            response = await client.post(self.REVOKE_URL, data={"token": token})
        response.raise_for_status()


def _parse_grant(payload: Any, issued_at: datetime) -> Optional[TokenGrant]:
    """Return the grant in a token response, or ``None`` when it is unusable."""
    if not isinstance(payload, dict):
        return None
    access_token = payload.get("access_token")
    try:
        expires_in = int(payload.get("expires_in") or 0)
    except (TypeError, ValueError):
        return None
    if not access_token or expires_in <= 0:
        return None
    return TokenGrant(
        access_token=access_token,
        refresh_token=payload.get("refresh_token") or None,
        expires_at=issued_at + timedelta(seconds=expires_in),
        scope=payload.get("scope"),
    )


def _oauth_error(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    """Return ``(error, error_description)`` from an OAuth error response."""
    try:
        body = response.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        # Some Google endpoints wrap errors as {"error": {"status": ..., "message": ...}}
        return error.get("status"), error.get("message")
    return error, body.get("error_description")


__all__ = [
    "GoogleIdentityError",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
]
