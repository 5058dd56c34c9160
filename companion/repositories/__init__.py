"""Repository exports."""

from .audit import AuditRepository
from .credentials import CredentialStore
from .users import UserRepository

__all__ = ["AuditRepository", "CredentialStore", "UserRepository"]
