"""Verification orchestrator.

Coordinates the content store, the ledger and the credential record store
into issue, verify and revoke operations, plus raw content upload and
download.

Policies:
- Ledger failures are absorbed on every write path (issue, revoke, upload);
  a placeholder transaction id is substituted where one is needed.
- Record store failures propagate to the caller.
- Each call that passes input validation produces exactly one log entry,
  whatever its outcome.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from docvault.audit.log import EventLog, RequestContext
from docvault.core.exceptions import (
    AuthorizationError,
    ContentStoreError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from docvault.credentials.store import CredentialStore
from docvault.db.models import Credential, CredentialCategory, CredentialStatus, EventType
from docvault.hashing import hash_bytes
from docvault.ipfs.backends import UploadMetadata
from docvault.ipfs.client import ContentStoreClient
from docvault.ledger.client import LedgerClient
from docvault.ledger.models import (
    LedgerCredential,
    LedgerTransaction,
    placeholder_record_id,
    placeholder_txn_id,
)

log = logging.getLogger(__name__)

_CATEGORIES = {c.value for c in CredentialCategory}


class LedgerVerdict(str, Enum):
    """What the ledger says about a credential.

    CONFIRMED: the ledger holds a valid record or a successful transaction
    UNCONFIRMED: the ledger is silent (unconfigured, unreachable or pending)
    CONTRADICTED: the ledger explicitly reports the credential as invalid
    """

    CONFIRMED = "confirmed"
    UNCONFIRMED = "unconfirmed"
    CONTRADICTED = "contradicted"


def ledger_verdict(ledger_data: LedgerCredential | LedgerTransaction | None) -> LedgerVerdict:
    """Classify a ledger read."""
    if ledger_data is None:
        return LedgerVerdict.UNCONFIRMED
    if isinstance(ledger_data, LedgerTransaction):
        return LedgerVerdict.CONFIRMED if ledger_data.succeeded else LedgerVerdict.UNCONFIRMED
    if ledger_data.is_valid is False:
        return LedgerVerdict.CONTRADICTED
    return LedgerVerdict.CONFIRMED


@dataclass
class VerificationResult:
    """Verdict bundle returned by verify."""

    is_valid: bool
    credential: Optional[Credential]
    ledger_data: Optional[dict]
    ledger_verdict: LedgerVerdict

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "credential": self.credential.to_dict() if self.credential else None,
            "ledgerData": self.ledger_data,
            "ledgerVerdict": self.ledger_verdict.value,
        }


@dataclass
class UploadResult:
    """Outcome of a raw content upload."""

    filename: str
    content_id: str
    content_hash: str
    txn_id: str
    credential_id: Optional[int]
    size: int
    gateway_url: str
    all_gateways: dict = field(default_factory=dict)
    ledger_stored: bool = False

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "contentId": self.content_id,
            "contentHash": self.content_hash,
            "txnId": self.txn_id,
            "credentialId": self.credential_id,
            "size": self.size,
            "gatewayUrl": self.gateway_url,
            "allGateways": self.all_gateways,
            "ledgerStored": self.ledger_stored,
        }


class VerificationOrchestrator:
    """Issue, verify and revoke credentials across the three backends.

    Holds no state between calls; collaborators are injected.
    """

    def __init__(
        self,
        store: CredentialStore,
        content_store: ContentStoreClient,
        ledger: LedgerClient,
        events: EventLog,
    ):
        self.store = store
        self.content_store = content_store
        self.ledger = ledger
        self.events = events

    # -------------------------------------------------------------------------
    # Issue
    # -------------------------------------------------------------------------

    async def issue(
        self,
        *,
        issuer: str,
        owner: str,
        title: str,
        content_id: Optional[str] = None,
        content_hash: Optional[str] = None,
        data: Optional[bytes] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        file_type: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> Credential:
        """Issue a credential for already-stored content or for raw bytes.

        Raises:
            ValidationError: Missing or inconsistent input (before any I/O)
            ContentStoreError: Raw bytes could not be stored
            DuplicateCredentialError: Hash, CID or ledger id already recorded
            PersistenceError: Any other record store failure
        """
        category = category or CredentialCategory.OTHER.value
        missing = [
            name
            for name, value in (("issuer", issuer), ("owner", owner), ("title", title))
            if not value
        ]
        if data is None:
            if not content_id:
                missing.append("contentId")
            if not content_hash:
                missing.append("contentHash")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if category not in _CATEGORIES:
            raise ValidationError(f"Invalid category: {category}")

        if data is not None:
            computed = hash_bytes(data)
            if content_hash and content_hash.lower() != computed:
                raise ValidationError("contentHash does not match the supplied content")
            content_hash = computed
            file_size = file_size if file_size is not None else len(data)
        content_hash = content_hash.lower()
        issuer = issuer.lower()
        owner = owner.lower()

        if data is not None:
            metadata = UploadMetadata(
                name=file_name or title,
                content_type=file_type or "application/octet-stream",
                category=category,
                uploaded_by=issuer,
            )
            try:
                stored = await self.content_store.upload(data, metadata)
            except ContentStoreError as e:
                self.events.record(
                    EventType.CREDENTIAL_ISSUED,
                    issuer,
                    success=False,
                    content_hash=content_hash,
                    error=str(e),
                    context=context,
                )
                raise
            content_id = stored.cid

        try:
            write = await self.ledger.issue_credential(content_id, content_hash, issuer, owner)
            credential_id, txn_id = write.record_id, write.txn_id
        except LedgerError as e:
            log.warning(f"Ledger issuance failed, using placeholder identifiers: {e}")
            credential_id, txn_id = placeholder_record_id(), placeholder_txn_id()

        try:
            credential = self.store.create(
                content_id=content_id,
                content_hash=content_hash,
                issuer=issuer,
                owner=owner,
                title=title,
                credential_id=credential_id,
                ledger_txn_id=txn_id,
                description=description,
                category=category,
                file_name=file_name,
                file_size=file_size,
                file_type=file_type,
                verified=True,
            )
        except PersistenceError as e:
            self.events.record(
                EventType.CREDENTIAL_ISSUED,
                issuer,
                success=False,
                content_id=content_id,
                content_hash=content_hash,
                ledger_txn_id=txn_id,
                error=str(e),
                context=context,
            )
            raise

        self.events.record(
            EventType.CREDENTIAL_ISSUED,
            issuer,
            credential_ref=credential.id,
            content_id=content_id,
            content_hash=content_hash,
            ledger_txn_id=txn_id,
            details={"owner": owner, "title": title, "category": category},
            context=context,
        )
        return credential

    # -------------------------------------------------------------------------
    # Verify
    # -------------------------------------------------------------------------

    async def verify(
        self,
        content_id: Optional[str] = None,
        content_hash: Optional[str] = None,
        txn_id: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> VerificationResult:
        """Reconcile the record store with the ledger for one credential.

        Lookup prefers the hash, then the CID, then the transaction id; only
        one lookup is performed. The ledger can veto a record store hit but
        never validates a credential on its own.

        Raises:
            ValidationError: No identifier supplied (before any I/O)
        """
        if not (content_id or content_hash or txn_id):
            raise ValidationError("Provide contentId, contentHash or txnId")

        if content_hash:
            content_hash = content_hash.lower()
            credential = self.store.find_by_hash(content_hash)
            lookup = "contentHash"
        elif content_id:
            credential = self.store.find_by_content_id(content_id)
            lookup = "contentId"
        else:
            credential = self.store.find_by_txn_id(txn_id)
            lookup = "txnId"

        ledger_read: LedgerCredential | LedgerTransaction | None = None
        if content_hash:
            ledger_read = await self.ledger.read_credential(content_hash)
        elif txn_id:
            ledger_read = await self.ledger.get_transaction(txn_id)

        verdict = ledger_verdict(ledger_read)
        is_valid = (
            credential is not None
            and credential.status == CredentialStatus.ACTIVE.value
            and verdict != LedgerVerdict.CONTRADICTED
        )

        self.events.record(
            EventType.CREDENTIAL_VERIFIED,
            credential.owner if credential else None,
            success=is_valid,
            credential_ref=credential.id if credential else None,
            content_id=credential.content_id if credential else content_id,
            content_hash=credential.content_hash if credential else content_hash,
            ledger_txn_id=credential.ledger_txn_id if credential else txn_id,
            details={"lookup": lookup, "ledgerVerdict": verdict.value},
            context=context,
        )

        return VerificationResult(
            is_valid=is_valid,
            credential=credential,
            ledger_data=ledger_read.to_dict() if ledger_read else None,
            ledger_verdict=verdict,
        )

    async def verify_content(
        self, data: bytes, context: Optional[RequestContext] = None
    ) -> VerificationResult:
        """Verify a presented file by hashing its bytes."""
        if not data:
            raise ValidationError("No file provided")
        return await self.verify(content_hash=hash_bytes(data), context=context)

    # -------------------------------------------------------------------------
    # Revoke
    # -------------------------------------------------------------------------

    async def revoke(
        self,
        content_hash: str,
        issuer: str,
        context: Optional[RequestContext] = None,
    ) -> Credential:
        """Revoke a credential. Only the original issuer may revoke.

        Raises:
            ValidationError: Missing fields (before any I/O)
            NotFoundError: No credential for the hash
            AuthorizationError: Issuer does not match
            PersistenceError: Status change could not be stored
        """
        missing = [
            name
            for name, value in (("contentHash", content_hash), ("issuer", issuer))
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        content_hash = content_hash.lower()
        issuer = issuer.lower()

        credential = self.store.find_by_hash(content_hash)
        if credential is None:
            self._revoke_failed(issuer, content_hash, "Credential not found", context)
            raise NotFoundError("Credential not found")
        if credential.issuer != issuer:
            self._revoke_failed(
                issuer, content_hash, "Only the issuer can revoke this credential", context,
                credential_ref=credential.id,
            )
            raise AuthorizationError("Only the issuer can revoke this credential")

        if credential.status == CredentialStatus.REVOKED.value:
            self.events.record(
                EventType.CREDENTIAL_REVOKED,
                issuer,
                credential_ref=credential.id,
                content_id=credential.content_id,
                content_hash=content_hash,
                details={"alreadyRevoked": True},
                context=context,
            )
            return credential

        txn_id = None
        try:
            write = await self.ledger.revoke_credential(content_hash, issuer)
            txn_id = write.txn_id
        except LedgerError as e:
            log.warning(f"Ledger revocation failed, revoking locally only: {e}")

        try:
            credential = self.store.mark_revoked(credential)
        except PersistenceError as e:
            self._revoke_failed(issuer, content_hash, str(e), context, credential_ref=credential.id)
            raise

        self.events.record(
            EventType.CREDENTIAL_REVOKED,
            issuer,
            credential_ref=credential.id,
            content_id=credential.content_id,
            content_hash=content_hash,
            ledger_txn_id=txn_id,
            details={"ledgerRevoked": txn_id is not None},
            context=context,
        )
        return credential

    def _revoke_failed(
        self,
        issuer: str,
        content_hash: str,
        error: str,
        context: Optional[RequestContext],
        credential_ref: Optional[str] = None,
    ) -> None:
        self.events.record(
            EventType.CREDENTIAL_REVOKED,
            issuer,
            success=False,
            credential_ref=credential_ref,
            content_hash=content_hash,
            error=error,
            context=context,
        )

    # -------------------------------------------------------------------------
    # Raw content
    # -------------------------------------------------------------------------

    async def upload_content(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        account: str,
        context: Optional[RequestContext] = None,
    ) -> UploadResult:
        """Store a file and anchor its hash on the ledger.

        The account is both issuer and owner of the ledger record. Ledger
        failure is absorbed and reported through ``ledger_stored``.

        Raises:
            ValidationError: Missing file or account (before any I/O)
            ContentStoreError: Every content store backend failed
        """
        if not data:
            raise ValidationError("No file provided")
        if not account:
            raise ValidationError("Wallet address is required")
        account = account.lower()
        content_hash = hash_bytes(data)
        file_details: dict[str, Any] = {
            "fileName": filename,
            "fileSize": len(data),
            "fileType": content_type,
        }

        try:
            stored = await self.content_store.upload(
                data,
                UploadMetadata(name=filename, content_type=content_type, uploaded_by=account),
            )
        except ContentStoreError as e:
            self.events.record(
                EventType.CONTENT_UPLOADED,
                account,
                success=False,
                content_hash=content_hash,
                details={"fileName": filename},
                error=str(e),
                context=context,
            )
            raise

        self.events.record(
            EventType.CONTENT_UPLOADED,
            account,
            content_id=stored.cid,
            content_hash=content_hash,
            details=file_details,
            context=context,
        )

        credential_id = None
        ledger_stored = False
        try:
            write = await self.ledger.issue_credential(stored.cid, content_hash, account, account)
            txn_id, credential_id = write.txn_id, write.record_id
            ledger_stored = not write.placeholder
        except LedgerError as e:
            log.warning(f"Ledger storage failed, using placeholder transaction id: {e}")
            txn_id = placeholder_txn_id()

        return UploadResult(
            filename=filename,
            content_id=stored.cid,
            content_hash=content_hash,
            txn_id=txn_id,
            credential_id=credential_id,
            size=stored.size or len(data),
            gateway_url=self.content_store.gateway_url(stored.cid),
            all_gateways=self.content_store.all_gateway_urls(stored.cid).to_dict(),
            ledger_stored=ledger_stored,
        )

    async def download_content(
        self,
        content_id: str,
        account: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> bytes:
        """Retrieve content by CID.

        Raises:
            ValidationError: Missing CID (before any I/O)
            ContentStoreError: Local node and every gateway failed
        """
        if not content_id:
            raise ValidationError("contentId is required")

        try:
            data = await self.content_store.download(content_id)
        except ContentStoreError as e:
            self.events.record(
                EventType.CONTENT_DOWNLOADED,
                account,
                success=False,
                content_id=content_id,
                error=str(e),
                context=context,
            )
            raise

        self.events.record(
            EventType.CONTENT_DOWNLOADED,
            account,
            content_id=content_id,
            details={"size": len(data)},
            context=context,
        )
        return data
