"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache

from companion.clients import (
    GeminiClient,
    GoogleOAuthClient,
    OAuthStateEncoder,
    SQLiteStore,
    YouTubeClient,
)
from companion.core.config import AppSettings, get_settings
from companion.repositories import AuditRepository, CredentialStore, UserRepository
from companion.services import (
    AuditLogger,
    AuthorizationService,
    ErrorClassifier,
    EventLogService,
    ProviderAdapter,
    RefreshManager,
    SessionTokenService,
    TitleSuggestionService,
    TokenCipherService,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the settings the factories below were built from."""
    return _settings()


@lru_cache()
def get_sqlite_store() -> SQLiteStore:
    """Provide the shared SQLite database."""
    return SQLiteStore(_settings().database_path)


@lru_cache()
def get_user_repository() -> UserRepository:
    return UserRepository(get_sqlite_store())


@lru_cache()
def get_credential_store() -> CredentialStore:
    return CredentialStore(get_sqlite_store())


@lru_cache()
def get_audit_repository() -> AuditRepository:
    return AuditRepository(get_sqlite_store())


@lru_cache()
def get_audit_logger() -> AuditLogger:
    return AuditLogger(get_audit_repository())


@lru_cache()
def get_event_log_service() -> EventLogService:
    return EventLogService(get_audit_repository())


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(
        secret_key=settings.google.client_secret,
        ttl_seconds=settings.oauth.state_ttl_seconds,
    )


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_youtube_client() -> YouTubeClient:
    return YouTubeClient(timeout_seconds=_settings().oauth.provider_timeout_seconds)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide the AES-GCM codec for provider secrets at rest."""
    return TokenCipherService(key_hex=_settings().security.encryption_key)


@lru_cache()
def get_session_token_service() -> SessionTokenService:
    settings = _settings()
    return SessionTokenService(
        secret=settings.security.jwt_secret,
        users=get_user_repository(),
        ttl=timedelta(seconds=settings.security.jwt_expires_in_seconds),
    )


@lru_cache()
def get_refresh_manager() -> RefreshManager:
    """Provide the process-wide refresh manager; its in-flight map must be shared."""
    settings = _settings()
    return RefreshManager(
        credentials=get_credential_store(),
        oauth_client=get_google_oauth_client(),
        token_cipher=get_token_cipher_service(),
        audit=get_audit_logger(),
        buffer=timedelta(seconds=settings.oauth.refresh_buffer_seconds),
    )


@lru_cache()
def get_provider_adapter() -> ProviderAdapter:
    return ProviderAdapter(
        refresh_manager=get_refresh_manager(),
        youtube=get_youtube_client(),
        users=get_user_repository(),
        credentials=get_credential_store(),
        audit=get_audit_logger(),
        classifier=ErrorClassifier(),
    )


@lru_cache()
def get_authorization_service() -> AuthorizationService:
    frontend = _settings().frontend_base_url
    return AuthorizationService(
        oauth_client=get_google_oauth_client(),
        state_encoder=get_oauth_state_encoder(),
        users=get_user_repository(),
        credentials=get_credential_store(),
        token_cipher=get_token_cipher_service(),
        sessions=get_session_token_service(),
        youtube=get_youtube_client(),
        audit=get_audit_logger(),
        frontend_base_url=str(frontend) if frontend else None,
    )


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Provide Gemini client instance."""
    return GeminiClient(_settings().gemini)


def get_title_suggestion_service() -> TitleSuggestionService:
    return TitleSuggestionService(generator=get_gemini_client(), audit=get_audit_logger())


__all__ = [
    "get_app_settings",
    "get_audit_logger",
    "get_audit_repository",
    "get_authorization_service",
    "get_credential_store",
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
]
