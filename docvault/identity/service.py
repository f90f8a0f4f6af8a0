"""Decentralized identity and user profile operations.

A DID is created by uploading a JSON metadata document to the content store,
registering its CID on the DID registry, and recording ``did:ethr:<account>``
on the user profile.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from docvault.audit.log import EventLog, RequestContext
from docvault.core.exceptions import (
    ContentStoreError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from docvault.credentials.store import CredentialStore
from docvault.db.models import CredentialStatus, EventType, User, UserRole
from docvault.identity.store import UserStore
from docvault.ipfs.backends import UploadMetadata
from docvault.ipfs.client import ContentStoreClient
from docvault.ledger.client import LedgerClient

log = logging.getLogger(__name__)

DID_METHOD_PREFIX = "did:ethr:"
METADATA_VERSION = "1.0"
RECENT_ACTIVITY_LIMIT = 5

_ROLES = {r.value for r in UserRole}


def make_did(account: str) -> str:
    return f"{DID_METHOD_PREFIX}{account.lower()}"


class IdentityService:
    """Creates DIDs and manages user profiles."""

    def __init__(
        self,
        users: UserStore,
        credentials: CredentialStore,
        content_store: ContentStoreClient,
        ledger: LedgerClient,
        events: EventLog,
    ):
        self.users = users
        self.credentials = credentials
        self.content_store = content_store
        self.ledger = ledger
        self.events = events

    async def create_identity(
        self,
        account: str,
        name: str,
        email: Optional[str] = None,
        organization: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> dict:
        """Create a DID for an account.

        Returns:
            Dict with did, identityId, metadataRef, txnId and the user profile

        Raises:
            ValidationError: Missing account or name, or the account already has a DID
            ContentStoreError: Metadata upload failed
            LedgerError: DID registry write failed
            PersistenceError: User profile could not be saved
        """
        if not account:
            raise ValidationError("Wallet address is required")
        if not name:
            raise ValidationError("Name is required")
        account = account.lower()

        existing = self.users.get(account)
        if existing is not None and existing.did:
            raise ValidationError("DID already exists for this wallet address")

        metadata = {
            "name": name,
            "email": email,
            "organization": organization,
            "walletAddress": account,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "version": METADATA_VERSION,
        }
        try:
            stored = await self.content_store.upload(
                json.dumps(metadata).encode("utf-8"),
                UploadMetadata(
                    name=f"did_{account}.json",
                    content_type="application/json",
                    category="identity",
                    uploaded_by=account,
                ),
            )
            write = await self.ledger.issue_identity(stored.cid, name, account)
        except (ContentStoreError, LedgerError) as e:
            self.events.record(
                EventType.IDENTITY_CREATED,
                account,
                success=False,
                details={"name": name},
                error=str(e),
                context=context,
            )
            raise

        did = make_did(account)
        try:
            user = self.users.upsert(
                account,
                name=name,
                email=email,
                organization=organization,
                did=did,
                identity_id=write.record_id,
                metadata_ref=stored.cid,
            )
        except PersistenceError as e:
            self.events.record(
                EventType.IDENTITY_CREATED,
                account,
                success=False,
                content_id=stored.cid,
                ledger_txn_id=write.txn_id,
                details={"name": name},
                error=str(e),
                context=context,
            )
            raise

        self.events.record(
            EventType.IDENTITY_CREATED,
            account,
            content_id=stored.cid,
            ledger_txn_id=write.txn_id,
            details={"identityId": write.record_id, "name": name},
            context=context,
        )
        log.info(f"Created DID {did}")

        return {
            "did": did,
            "identityId": write.record_id,
            "metadataRef": stored.cid,
            "txnId": write.txn_id,
            "user": user.to_dict(),
        }

    async def get_identity(self, account: str) -> Optional[dict]:
        """DID profile plus the ledger's view of it, or None without a DID."""
        user = self.users.get(account)
        if user is None or not user.did:
            return None

        ledger_identity = await self.ledger.read_identity(account)
        return {
            "did": user.did,
            "identityId": user.identity_id,
            "metadataRef": user.metadata_ref,
            "name": user.name,
            "email": user.email,
            "organization": user.organization,
            "ledgerData": ledger_identity.to_dict() if ledger_identity else None,
            "createdAt": user.to_dict()["createdAt"],
        }

    def get_user(self, account: str) -> dict:
        """Profile plus the number of active credentials owned.

        Raises:
            NotFoundError: Unknown account
        """
        user = self._require_user(account)
        return {
            **user.to_dict(),
            "credentialsCount": self.credentials.count_by_owner(
                account, status=CredentialStatus.ACTIVE.value
            ),
        }

    def get_user_stats(self, account: str) -> dict:
        """Document counts and the most recent uploads.

        Raises:
            NotFoundError: Unknown account
        """
        self._require_user(account)
        recent = self.credentials.list_by_owner(account, limit=RECENT_ACTIVITY_LIMIT)
        return {
            "totalDocuments": self.credentials.count_by_owner(account),
            "verifiedDocuments": self.credentials.count_by_owner(
                account, status=CredentialStatus.ACTIVE.value, verified=True
            ),
            "recentActivity": [
                {
                    "id": c.id,
                    "action": "Document uploaded",
                    "document": c.title,
                    "category": c.category,
                    "time": c.to_dict()["createdAt"],
                }
                for c in recent
            ],
        }

    def upsert_user(
        self,
        account: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        organization: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        """Create or update a profile.

        Raises:
            ValidationError: Missing account or unknown role
        """
        if not account:
            raise ValidationError("Wallet address is required")
        if role and role not in _ROLES:
            raise ValidationError(f"Invalid role: {role}")
        return self.users.upsert(
            account, name=name, email=email, organization=organization, role=role
        )

    def _require_user(self, account: str) -> User:
        user = self.users.get(account)
        if user is None:
            raise NotFoundError("User not found")
        return user
