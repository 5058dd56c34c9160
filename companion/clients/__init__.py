"""Expose constructed client wrappers."""

from .gemini import GeminiClient
from .google_auth import GoogleOAuthClient, OAuthStateEncoder
from .sqlite_store import SQLiteStore
from .youtube import YouTubeClient

__all__ = [
    "GeminiClient",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "SQLiteStore",
    "YouTubeClient",
]
