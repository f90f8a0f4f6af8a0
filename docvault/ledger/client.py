"""Ledger client facade.

Bundles the credential and identity registries behind one object and adds
raw transaction lookup. The concrete registry for each contract is chosen
once from configuration: an empty contract address (or an unusable signer key)
selects the fallback registry.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import AsyncWeb3

from docvault import config
from docvault.ledger.abi import CREDENTIAL_STORE_ABI, DID_REGISTRY_ABI
from docvault.ledger.models import LedgerCredential, LedgerIdentity, LedgerTransaction, LedgerWrite
from docvault.ledger.registries import (
    ContractCredentialRegistry,
    ContractIdentityRegistry,
    CredentialRegistry,
    FallbackCredentialRegistry,
    FallbackIdentityRegistry,
    IdentityRegistry,
    TransactionSender,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerConfig:
    """Settings used to connect to the ledger."""

    rpc_url: str = "http://localhost:8545"
    chain_id: Optional[int] = None
    private_key: str = ""
    did_registry_address: str = ""
    credential_store_address: str = ""
    receipt_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        return cls(
            rpc_url=config.RPC_URL,
            chain_id=config.NETWORK_ID,
            private_key=config.PRIVATE_KEY,
            did_registry_address=config.DID_REGISTRY_ADDRESS,
            credential_store_address=config.CREDENTIAL_STORE_ADDRESS,
            receipt_timeout=config.LEDGER_RECEIPT_TIMEOUT,
        )


class LedgerClient:
    """Uniform access to the credential store and DID registry contracts."""

    def __init__(
        self,
        credentials: Optional[CredentialRegistry] = None,
        identities: Optional[IdentityRegistry] = None,
        w3: Optional[AsyncWeb3] = None,
    ):
        self.credentials = credentials or FallbackCredentialRegistry()
        self.identities = identities or FallbackIdentityRegistry()
        self._w3 = w3

    @property
    def configured(self) -> bool:
        """True when at least one contract is reachable."""
        return self.credentials.configured or self.identities.configured

    async def issue_identity(self, metadata_ref: str, name: str, owner: str) -> LedgerWrite:
        return await self.identities.issue_identity(metadata_ref, name, owner)

    async def read_identity(self, owner: str) -> Optional[LedgerIdentity]:
        return await self.identities.read_identity(owner)

    async def issue_credential(
        self, content_id: str, content_hash: str, issuer: str, owner: str
    ) -> LedgerWrite:
        return await self.credentials.issue_credential(content_id, content_hash, issuer, owner)

    async def revoke_credential(self, content_hash: str, issuer: str) -> LedgerWrite:
        return await self.credentials.revoke_credential(content_hash, issuer)

    async def read_credential(self, content_hash: str) -> Optional[LedgerCredential]:
        return await self.credentials.read_credential(content_hash)

    async def get_transaction(self, txn_id: str) -> Optional[LedgerTransaction]:
        """Look up a transaction and its receipt. Returns None when unavailable."""
        if self._w3 is None:
            return None
        try:
            tx = await self._w3.eth.get_transaction(txn_id)
            receipt = await self._w3.eth.get_transaction_receipt(txn_id)
        except Exception as e:
            log.error(f"Error getting transaction {txn_id}: {e}")
            return None

        return LedgerTransaction(
            hash=txn_id,
            sender=tx.get("from"),
            recipient=tx.get("to"),
            block_number=tx.get("blockNumber"),
            status=receipt.get("status"),
            gas_used=str(receipt.get("gasUsed")) if receipt.get("gasUsed") is not None else None,
        )


def build_ledger_client(settings: LedgerConfig) -> LedgerClient:
    """Construct a ledger client, falling back per contract when unconfigured."""
    if not (settings.did_registry_address or settings.credential_store_address):
        log.warning("No contract addresses configured: using placeholder ledger identifiers")
        return LedgerClient()

    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.rpc_url))

    account = None
    if settings.private_key:
        try:
            account = w3.eth.account.from_key(settings.private_key)
        except (ValueError, TypeError) as e:
            log.error(f"Invalid ledger private key, using placeholder ledger: {e}")
            return LedgerClient()

    sender = TransactionSender(
        w3,
        account=account,
        chain_id=settings.chain_id if account is not None else None,
        receipt_timeout=settings.receipt_timeout,
    )

    credentials: Optional[CredentialRegistry] = None
    if settings.credential_store_address:
        try:
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(settings.credential_store_address),
                abi=CREDENTIAL_STORE_ABI,
            )
            credentials = ContractCredentialRegistry(contract, sender)
            log.info(f"Credential store contract at {settings.credential_store_address}")
        except ValueError as e:
            log.error(f"Invalid credential store address, using placeholder ledger: {e}")

    identities: Optional[IdentityRegistry] = None
    if settings.did_registry_address:
        try:
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(settings.did_registry_address),
                abi=DID_REGISTRY_ABI,
            )
            identities = ContractIdentityRegistry(contract, sender)
            log.info(f"DID registry contract at {settings.did_registry_address}")
        except ValueError as e:
            log.error(f"Invalid DID registry address, using placeholder ledger: {e}")

    return LedgerClient(credentials=credentials, identities=identities, w3=w3)


# Module-level singleton
_ledger_client: Optional[LedgerClient] = None


def get_ledger_client() -> LedgerClient:
    """Get or create the ledger client singleton."""
    global _ledger_client
    if _ledger_client is None:
        _ledger_client = build_ledger_client(LedgerConfig.from_env())
    return _ledger_client


def reset_ledger_client() -> None:
    """Reset the singleton (for testing)."""
    global _ledger_client
    _ledger_client = None
