"""Database package for DocVault.

Provides SQLAlchemy ORM models and session management for credentials,
log entries and user profiles.
"""

from docvault.db.models import (
    Base,
    Credential,
    CredentialCategory,
    CredentialStatus,
    EventType,
    LogEntry,
    User,
    UserRole,
)
from docvault.db.session import SessionLocal, engine, get_db

__all__ = [
    "Base",
    "Credential",
    "CredentialCategory",
    "CredentialStatus",
    "EventType",
    "LogEntry",
    "User",
    "UserRole",
    "get_db",
    "engine",
    "SessionLocal",
]
