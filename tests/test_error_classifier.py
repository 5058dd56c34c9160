try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httplib2
import httpx
import pytest
from google.api_core import exceptions as google_exceptions
from googleapiclient.errors import HttpError

from companion.core.errors import (
    DOMAIN_ERRORS,
    ConfigurationError,
    NotAuthorized,
    PermissionDenied,
    QuotaExceeded,
    ReauthorizationRequired,
    RefreshFailed,
    ResourceNotFound,
    UpstreamError,
)
from companion.services.error_classifier import (
    ErrorClassifier,
    ProviderFailure,
    classify_ai_error,
)


def _http_error(status: int, reason: str | None = None) -> HttpError:
    body: dict = {"error": {"code": status, "message": "provider said no"}}
    if reason:
        body["error"]["errors"] = [{"reason": reason, "domain": "youtube.quota"}]
    return HttpError(
        httplib2.Response({"status": status}),
        json.dumps(body).encode("utf-8"),
        uri="https://youtube.googleapis.com/youtube/v3/videos",
    )


@pytest.mark.parametrize(
    "status, reason, expected",
    [
        (403, "quotaExceeded", QuotaExceeded),
        (403, "dailyLimitExceeded", QuotaExceeded),
        (403, "rateLimitExceeded", QuotaExceeded),
        (403, "forbidden", PermissionDenied),
        (403, "insufficientPermissions", PermissionDenied),
        (404, "videoNotFound", ResourceNotFound),
        (401, None, ReauthorizationRequired),
        (401, "authError", ReauthorizationRequired),
        (429, None, QuotaExceeded),
        (500, None, UpstreamError),
        (500, "backendError", UpstreamError),
        (403, "somethingNew", UpstreamError),
    ],
)
def test_http_errors_are_classified(status, reason, expected) -> None:
    error = ErrorClassifier().classify(_http_error(status, reason))

    assert type(error) is expected


def test_classified_message_does_not_leak_provider_body() -> None:
    error = ErrorClassifier().classify(_http_error(403, "quotaExceeded"))

    assert "provider said no" not in error.message
    assert error.to_dict() == {"error": "quota_exceeded", "message": error.message}


def test_provider_failure_values_are_classified() -> None:
    classifier = ErrorClassifier()

    assert isinstance(classifier.classify(ProviderFailure(403, "quotaExceeded")), QuotaExceeded)
    assert isinstance(classifier.classify(ProviderFailure(400, "invalid_grant")), ReauthorizationRequired)
    assert isinstance(classifier.classify(ProviderFailure(None)), UpstreamError)


def test_httpx_status_errors_are_classified() -> None:
    request = httpx.Request("POST", "https://oauth2.googleapis.com/token")
    response = httpx.Response(400, json={"error": "invalid_grant"}, request=request)
    error = httpx.HTTPStatusError("bad", request=request, response=response)

    assert isinstance(ErrorClassifier().classify(error), ReauthorizationRequired)


@pytest.mark.parametrize(
    "raw",
    [TimeoutError("timed out"), ConnectionResetError(), httpx.ConnectError("down"), ValueError()],
)
def test_transport_failures_are_upstream_errors(raw) -> None:
    error = ErrorClassifier().classify(raw)

    assert isinstance(error, UpstreamError)
    assert error.retryable


def test_refresh_failures_split_on_permanence() -> None:
    classifier = ErrorClassifier()

    assert isinstance(
        classifier.classify(RefreshFailed("no", status_code=400, reason="invalid_grant")),
        ReauthorizationRequired,
    )
    assert isinstance(
        classifier.classify(RefreshFailed("no", status_code=503)), UpstreamError
    )
    assert isinstance(classifier.classify(RefreshFailed("timeout")), UpstreamError)


def test_domain_errors_pass_through_unchanged() -> None:
    original = NotAuthorized("who are you")

    assert ErrorClassifier().classify(original) is original


def test_registered_rules_take_effect() -> None:
    classifier = ErrorClassifier()
    classifier.register(PermissionDenied, status=400, reason="commentsDisabled")
    classifier.register(ResourceNotFound, status=410)

    assert isinstance(classifier.classify(ProviderFailure(400, "commentsDisabled")), PermissionDenied)
    assert isinstance(classifier.classify(ProviderFailure(410)), ResourceNotFound)
    with pytest.raises(ValueError):
        classifier.register(UpstreamError)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (google_exceptions.ResourceExhausted("slow down"), QuotaExceeded),
        (google_exceptions.TooManyRequests("slow down"), QuotaExceeded),
        (google_exceptions.Unauthenticated("bad key"), ConfigurationError),
        (google_exceptions.PermissionDenied("bad key"), ConfigurationError),
        (google_exceptions.InternalServerError("boom"), UpstreamError),
        (RuntimeError("boom"), UpstreamError),
    ],
)
def test_ai_errors_are_classified(raw, expected) -> None:
    assert type(classify_ai_error(raw)) is expected


def test_domain_error_kinds_are_distinct() -> None:
    kinds = [error.kind for error in DOMAIN_ERRORS]

    assert len(kinds) == len(set(kinds))
    assert {error.kind for error in DOMAIN_ERRORS if error.fatal} == {
        "configuration_error",
        "decryption_error",
    }
