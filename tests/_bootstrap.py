"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
TEST_JWT_SECRET = "test-jwt-secret-with-at-least-32-characters"

_DEFAULT_ENV_VARS: dict[str, str] = {
    "GOOGLE_CLIENT_ID": "test-client-id",
    "GOOGLE_CLIENT_SECRET": "test-client-secret",
    "GOOGLE_REDIRECT_URI": "https://example.com/oauth/callback",
    "GEMINI_API_KEY": "test-gemini-key",
    "ENCRYPTION_KEY": TEST_ENCRYPTION_KEY,
    "JWT_SECRET": TEST_JWT_SECRET,
    "DATABASE_PATH": str(Path(tempfile.gettempdir()) / "companion-tests.sqlite3"),
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
