"""Credential record store.

Durable storage for Credential rows. Uniqueness of the content hash, CID and
ledger credential id is enforced by the database; a violation surfaces as
DuplicateCredentialError.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from docvault.core.exceptions import DuplicateCredentialError, PersistenceError
from docvault.db.models import Credential, CredentialStatus

log = logging.getLogger(__name__)


def _norm(account: Optional[str]) -> Optional[str]:
    return account.lower() if account else account


class CredentialStore:
    """Store for credential CRUD operations."""

    def __init__(self, db: Session):
        """Initialize store with database session.

        Args:
            db: SQLAlchemy session
        """
        self.db = db

    def create(
        self,
        content_id: str,
        content_hash: str,
        issuer: str,
        owner: str,
        title: str,
        credential_id: Optional[int] = None,
        ledger_txn_id: Optional[str] = None,
        description: Optional[str] = None,
        category: str = "other",
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        file_type: Optional[str] = None,
        verified: bool = False,
    ) -> Credential:
        """Persist a new credential.

        Returns:
            Created Credential instance

        Raises:
            DuplicateCredentialError: If the hash, CID or ledger id already exists
            PersistenceError: On any other database failure
        """
        credential = Credential(
            credential_id=credential_id,
            content_id=content_id,
            content_hash=content_hash.lower(),
            ledger_txn_id=ledger_txn_id,
            issuer=issuer,
            owner=owner,
            title=title,
            description=description,
            category=category,
            file_name=file_name,
            file_size=file_size,
            file_type=file_type,
            status=CredentialStatus.ACTIVE.value,
            verified=verified,
        )
        self.db.add(credential)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            log.warning(f"Duplicate credential for hash {content_hash[:16]}...: {e.orig}")
            raise DuplicateCredentialError(
                f"Credential already exists for this content: {content_hash}"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to store credential {content_hash[:16]}...: {e}")
            raise PersistenceError(f"Failed to store credential: {e}") from e

        self.db.refresh(credential)
        log.info(f"Created credential {credential.id} for hash {content_hash[:16]}...")
        return credential

    def find_by_id(self, record_id: str) -> Optional[Credential]:
        return self.db.query(Credential).filter(Credential.id == record_id).first()

    def find_by_hash(self, content_hash: str) -> Optional[Credential]:
        return (
            self.db.query(Credential)
            .filter(Credential.content_hash == content_hash.lower())
            .first()
        )

    def find_by_content_id(self, content_id: str) -> Optional[Credential]:
        return self.db.query(Credential).filter(Credential.content_id == content_id).first()

    def find_by_txn_id(self, txn_id: str) -> Optional[Credential]:
        return self.db.query(Credential).filter(Credential.ledger_txn_id == txn_id).first()

    def list_by_owner(self, owner: str, limit: Optional[int] = None) -> list[Credential]:
        """List credentials owned by an account, newest first.

        Args:
            owner: Owner account (any case)
            limit: Maximum number of rows (optional)
        """
        query = (
            self.db.query(Credential)
            .filter(Credential.owner == _norm(owner))
            .order_by(Credential.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_by_owner(
        self,
        owner: str,
        status: Optional[str] = None,
        verified: Optional[bool] = None,
    ) -> int:
        """Count credentials owned by an account, optionally filtered."""
        query = self.db.query(Credential).filter(Credential.owner == _norm(owner))
        if status is not None:
            query = query.filter(Credential.status == status)
        if verified is not None:
            query = query.filter(Credential.verified == verified)
        return query.count()

    def mark_revoked(self, credential: Credential) -> Credential:
        """Set a credential's status to revoked. Idempotent.

        Raises:
            PersistenceError: If the update cannot be committed
        """
        credential.status = CredentialStatus.REVOKED.value
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to revoke credential: {e}") from e
        self.db.refresh(credential)
        log.info(f"Revoked credential {credential.id}")
        return credential
