"""
Translate provider failures into the closed set of domain errors.

Classification is driven by two lookup tables: ``(status, reason)`` rules are
consulted first, then status-only rules. Anything no rule matches becomes an
``UpstreamError``, so every input yields a domain error.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from google.api_core import exceptions as google_exceptions
from googleapiclient.errors import HttpError

from companion.core.errors import (
    CompanionError,
    ConfigurationError,
    PermissionDenied,
    QuotaExceeded,
    ReauthorizationRequired,
    RefreshFailed,
    ResourceNotFound,
    UpstreamError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderFailure:
    """Normalized view of a provider error: HTTP status plus reason code."""

    status: Optional[int]
    reason: Optional[str] = None


_REASON_RULES: dict[tuple[Optional[int], str], type[CompanionError]] = {
    (403, "quotaExceeded"): QuotaExceeded,
    (403, "dailyLimitExceeded"): QuotaExceeded,
    (403, "rateLimitExceeded"): QuotaExceeded,
    (403, "userRateLimitExceeded"): QuotaExceeded,
    (403, "forbidden"): PermissionDenied,
    (403, "insufficientPermissions"): PermissionDenied,
    (403, "ownershipMismatch"): PermissionDenied,
    # Reason codes that mean "credential rejected" whatever the status.
    (None, "authError"): ReauthorizationRequired,
    (None, "invalid_grant"): ReauthorizationRequired,
}

_STATUS_RULES: dict[int, type[CompanionError]] = {
    401: ReauthorizationRequired,
    404: ResourceNotFound,
    429: QuotaExceeded,
}


class ErrorClassifier:
    """Map raw provider exceptions to ``CompanionError`` instances."""

    def __init__(self) -> None:
        self._reason_rules = dict(_REASON_RULES)
        self._status_rules = dict(_STATUS_RULES)

    def register(
        self,
        kind: type[CompanionError],
        *,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Add a rule; ``reason`` rules win over status-only rules."""
        if reason is not None:
            self._reason_rules[(status, reason)] = kind
        elif status is not None:
            self._status_rules[status] = kind
        else:
            raise ValueError("A rule needs a status, a reason, or both.")

    def classify(self, error: object) -> CompanionError:
        if isinstance(error, CompanionError):
            return error
        if isinstance(error, RefreshFailed):
            if error.permanent:
                return ReauthorizationRequired()
            return UpstreamError("Could not refresh YouTube access. Please try again.")

        failure = self.describe(error)
        kind = self._lookup(failure)
        if kind is None:
            logger.warning(
                "Unclassified provider failure status=%s reason=%s type=%s",
                failure.status,
                failure.reason,
                error.__class__.__name__,
            )
            return UpstreamError()
        return kind()

    def describe(self, error: object) -> ProviderFailure:
        """Extract status and reason from the error shapes we know about."""
        if isinstance(error, ProviderFailure):
            return error
        if isinstance(error, HttpError):
            status = getattr(error.resp, "status", None) or getattr(error, "status_code", None)
            return ProviderFailure(_as_int(status), _reason_from_http_error(error))
        if isinstance(error, httpx.HTTPStatusError):
            return ProviderFailure(
                error.response.status_code, _reason_from_body(error.response.content)
            )
        return ProviderFailure(None, None)

    def _lookup(self, failure: ProviderFailure) -> Optional[type[CompanionError]]:
        if failure.reason:
            kind = self._reason_rules.get((failure.status, failure.reason))
            if kind is None:
                kind = self._reason_rules.get((None, failure.reason))
            if kind is not None:
                return kind
        if failure.status is not None:
            return self._status_rules.get(failure.status)
        return None


def classify_ai_error(error: BaseException) -> CompanionError:
    """Classify failures from the AI completion service."""
    if isinstance(error, CompanionError):
        return error
    if isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return QuotaExceeded("AI rate limit exceeded. Please try again later.")
    if isinstance(error, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        return ConfigurationError("Invalid AI API key configuration.")
    return UpstreamError("Failed to generate title suggestions.")


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _reason_from_http_error(error: HttpError) -> Optional[str]:
    reason = _reason_from_body(error.content)
    if reason:
        return reason
    details = getattr(error, "error_details", None)
    if isinstance(details, list):
        for detail in details:
            if isinstance(detail, dict) and detail.get("reason"):
                return str(detail["reason"])
    return None


def _reason_from_body(content: Any) -> Optional[str]:
    """Pull ``error.errors[0].reason`` (or an OAuth ``error`` code) from a body."""
    if not content:
        return None
    try:
        body = json.loads(content)
    except (TypeError, ValueError):
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str):
        return error
    if not isinstance(error, dict):
        return None
    for item in error.get("errors") or []:
        if isinstance(item, dict) and item.get("reason"):
            return str(item["reason"])
    details = error.get("details") or []
    for item in details:
        if isinstance(item, dict) and item.get("reason"):
            return str(item["reason"])
    return None


__all__ = ["ErrorClassifier", "ProviderFailure", "classify_ai_error"]
