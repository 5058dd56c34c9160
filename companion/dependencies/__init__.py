"""Expose dependency helpers for FastAPI routers."""

from .auth import CurrentUser, SESSION_COOKIE, get_current_user, session_token_from_request
from .clients import (
    get_app_settings,
    get_audit_logger,
    get_audit_repository,
    get_authorization_service,
    get_credential_store,
    get_event_log_service,
    get_gemini_client,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_provider_adapter,
    get_refresh_manager,
    get_session_token_service,
    get_sqlite_store,
    get_title_suggestion_service,
    get_token_cipher_service,
    get_user_repository,
    get_youtube_client,
)

__all__ = [
    "CurrentUser",
    "SESSION_COOKIE",
    "get_app_settings",
    "get_audit_logger",
    "get_audit_repository",
    "get_authorization_service",
    "get_credential_store",
    "get_current_user",
    "get_event_log_service",
    "get_gemini_client",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_provider_adapter",
    "get_refresh_manager",
    "get_session_token_service",
    "get_sqlite_store",
    "get_title_suggestion_service",
    "get_token_cipher_service",
    "get_user_repository",
    "get_youtube_client",
    "session_token_from_request",
]
