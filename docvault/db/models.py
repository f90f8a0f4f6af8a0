"""SQLAlchemy ORM models for DocVault.

This module defines the database schema for:
- Credentials (one issued document, keyed by content hash and CID)
- Log entries (append-only audit trail of orchestrator operations)
- Users (wallet-account profiles with their DID)

Account and email columns are normalized to lowercase on every assignment.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import DeclarativeBase


class CredentialCategory(str, Enum):
    CERTIFICATE = "certificate"
    DIPLOMA = "diploma"
    LICENSE = "license"
    IDENTITY = "identity"
    OTHER = "other"


class CredentialStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class EventType(str, Enum):
    IDENTITY_CREATED = "identity_created"
    CREDENTIAL_ISSUED = "credential_issued"
    CREDENTIAL_VERIFIED = "credential_verified"
    CREDENTIAL_REVOKED = "credential_revoked"
    CONTENT_UPLOADED = "content_uploaded"
    CONTENT_DOWNLOADED = "content_downloaded"


class UserRole(str, Enum):
    USER = "user"
    VERIFIER = "verifier"
    ISSUER = "issuer"


def _new_id() -> str:
    return str(uuid.uuid4())


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Credential(Base):
    """A document credential.

    Created only by issuance and mutated only by revocation. The content hash,
    CID and (when present) ledger credential id are each unique.
    """

    __tablename__ = "credentials"

    id = Column(String(36), primary_key=True, default=_new_id)  # UUID
    credential_id = Column(BigInteger, nullable=True, unique=True)  # Ledger-assigned
    content_id = Column(String(128), nullable=False, unique=True)  # IPFS CID
    content_hash = Column(String(64), nullable=False, unique=True)  # SHA-256 hex
    ledger_txn_id = Column(String(66), nullable=True, index=True)
    issuer = Column(String(64), nullable=False, index=True)
    owner = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(32), default=CredentialCategory.OTHER.value, nullable=False)
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(128), nullable=True)
    status = Column(String(16), default=CredentialStatus.ACTIVE.value, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    @property
    def is_active(self) -> bool:
        return self.status == CredentialStatus.ACTIVE.value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credentialId": self.credential_id,
            "contentId": self.content_id,
            "contentHash": self.content_hash,
            "ledgerTxnId": self.ledger_txn_id,
            "issuer": self.issuer,
            "owner": self.owner,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "fileType": self.file_type,
            "status": self.status,
            "verified": self.verified,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Credential(id={self.id!r}, content_hash={self.content_hash!r}, status={self.status!r})>"


class LogEntry(Base):
    """Immutable record of one orchestrator operation."""

    __tablename__ = "log_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(32), nullable=False, index=True)
    account = Column(String(64), nullable=False, default="unknown", index=True)
    credential_ref = Column(String(36), nullable=True)  # Credential.id by value
    content_id = Column(String(128), nullable=True)
    content_hash = Column(String(64), nullable=True)
    ledger_txn_id = Column(String(66), nullable=True)
    details = Column(JSON, nullable=True)
    success = Column(Boolean, default=True, nullable=False)
    error = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "eventType": self.event_type,
            "account": self.account,
            "credentialRef": self.credential_ref,
            "contentId": self.content_id,
            "contentHash": self.content_hash,
            "ledgerTxnId": self.ledger_txn_id,
            "details": self.details,
            "success": self.success,
            "error": self.error,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "timestamp": _iso(self.timestamp),
        }

    def __repr__(self) -> str:
        return f"<LogEntry(id={self.id!r}, event_type={self.event_type!r}, success={self.success!r})>"


class User(Base):
    """User profile keyed by wallet account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)  # UUID
    account = Column(String(64), nullable=False, unique=True)  # Lowercase
    did = Column(String(128), nullable=True, unique=True)  # did:ethr:<account>
    identity_id = Column(BigInteger, nullable=True)  # Ledger-assigned
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)  # Lowercase
    organization = Column(String(255), nullable=True)
    role = Column(String(16), default=UserRole.USER.value, nullable=False)
    metadata_ref = Column(String(128), nullable=True)  # CID of DID metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account": self.account,
            "did": self.did,
            "identityId": self.identity_id,
            "name": self.name,
            "email": self.email,
            "organization": self.organization,
            "role": self.role,
            "metadataRef": self.metadata_ref,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, account={self.account!r}, did={self.did!r})>"


def _lowercase(target, value, oldvalue, initiator):
    """Normalize account-like values to lowercase."""
    if value is not None:
        return value.lower()
    return value


for _column in (
    Credential.issuer,
    Credential.owner,
    LogEntry.account,
    User.account,
    User.email,
):
    event.listen(_column, "set", _lowercase, retval=True, propagate=True)
