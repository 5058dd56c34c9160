"""
Domain error taxonomy shared by the credential services and the API layer.

Every failure that reaches a caller is one of the ``CompanionError``
subclasses below. Each carries a stable machine-readable ``kind`` and a
human-readable message; raw provider payloads are never attached to the
message.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import ClassVar, Optional


class CompanionError(Exception):
    """Base class for all domain errors."""

    kind: ClassVar[str] = "error"
    status_code: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: ClassVar[str] = "An unexpected error occurred."
    retryable: ClassVar[bool] = False
    fatal: ClassVar[bool] = False

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class NotAuthorized(CompanionError):
    kind = "not_authorized"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Authentication required."


class ReauthorizationRequired(CompanionError):
    """The provider credential is unusable; the user must grant access again.

    Only the stored provider credential is affected. The application session
    stays valid so the user can be redirected through the consent flow.
    """

    kind = "reauthorization_required"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "YouTube access has expired. Please reconnect your account."


class QuotaExceeded(CompanionError):
    kind = "quota_exceeded"
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    default_message = "YouTube API quota exceeded. Please try again later."
    retryable = True


class PermissionDenied(CompanionError):
    kind = "permission_denied"
    status_code = HTTPStatus.FORBIDDEN
    default_message = "You do not have permission to perform this action."


class ResourceNotFound(CompanionError):
    kind = "resource_not_found"
    status_code = HTTPStatus.NOT_FOUND
    default_message = "The requested resource was not found."


class UpstreamError(CompanionError):
    kind = "upstream_error"
    status_code = HTTPStatus.BAD_GATEWAY
    default_message = "An error occurred with the YouTube API."
    retryable = True


class ConfigurationError(CompanionError):
    kind = "configuration_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "The server is misconfigured."
    fatal = True


class DecryptionError(CompanionError):
    kind = "decryption_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Stored credential could not be decrypted."
    fatal = True


class InvalidSignature(CompanionError):
    kind = "invalid_signature"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Invalid token."


class Expired(CompanionError):
    kind = "expired"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Token expired."


class Malformed(CompanionError):
    kind = "malformed"
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Malformed token."


class AuthorizationFailed(CompanionError):
    """Raised when the consent callback cannot be turned into a linked account."""

    kind = "authorization_failed"
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Failed to complete Google authorization."


class InvalidRequest(CompanionError):
    """Raised when a caller names an unknown operation or omits its parameters."""

    kind = "invalid_request"
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "The request is missing required parameters."


class RefreshFailed(Exception):
    """Raised when the provider rejects a refresh-token exchange.

    ``status_code`` is ``None`` when the exchange never produced a response
    (timeouts, connection failures).
    """

    _PERMANENT_REASONS = frozenset({"invalid_grant", "unauthorized_client"})

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @property
    def permanent(self) -> bool:
        """True when retrying the exchange cannot succeed without a new grant."""
        if self.reason in self._PERMANENT_REASONS:
            return True
        return self.status_code in (HTTPStatus.BAD_REQUEST, HTTPStatus.UNAUTHORIZED)


DOMAIN_ERRORS: tuple[type[CompanionError], ...] = (
    NotAuthorized,
    ReauthorizationRequired,
    QuotaExceeded,
    PermissionDenied,
    ResourceNotFound,
    UpstreamError,
    ConfigurationError,
    DecryptionError,
    InvalidSignature,
    Expired,
    Malformed,
)


__all__ = [
    "AuthorizationFailed",
    "CompanionError",
    "ConfigurationError",
    "DOMAIN_ERRORS",
    "DecryptionError",
    "Expired",
    "InvalidRequest",
    "InvalidSignature",
    "Malformed",
    "NotAuthorized",
    "PermissionDenied",
    "QuotaExceeded",
    "ReauthorizationRequired",
    "RefreshFailed",
    "ResourceNotFound",
    "UpstreamError",
]
