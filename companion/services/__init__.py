"""Service layer exports."""

from .audit import AuditLogger
from .authorization import AuthorizationResult, AuthorizationService
from .error_classifier import ErrorClassifier, ProviderFailure, classify_ai_error
from .event_log import EventLogService
from .provider_adapter import ProviderAdapter, ProviderOperation
from .refresh_manager import CredentialState, RefreshManager
from .session_tokens import SessionTokenService
from .title_suggestions import TitleSuggestionService
from .token_cipher import TokenCipherService, generate_key

__all__ = [
    "AuditLogger",
    "AuthorizationResult",
    "AuthorizationService",
    "CredentialState",
    "ErrorClassifier",
    "EventLogService",
    "ProviderAdapter",
    "ProviderFailure",
    "ProviderOperation",
    "RefreshManager",
    "SessionTokenService",
    "TitleSuggestionService",
    "TokenCipherService",
    "classify_ai_error",
    "generate_key",
]
