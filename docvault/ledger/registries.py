"""Ledger registries: contract-backed and fallback implementations.

Two capability interfaces mirror the two contracts:
- CredentialRegistry: store, verify and revoke document credentials
- IdentityRegistry: create and read DIDs

Each has a contract implementation (web3.py) and a fallback used when no
contract address is configured. The fallback's writes synthesize placeholder
identifiers and succeed; its reads return None.

Error policy for contract implementations: failed writes raise LedgerError,
failed reads are logged and degrade to an empty or invalid result.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from web3 import AsyncWeb3
from web3.logs import DISCARD

from docvault.core.exceptions import LedgerError
from docvault.ledger.models import (
    LedgerCredential,
    LedgerIdentity,
    LedgerWrite,
    placeholder_record_id,
    placeholder_txn_id,
)

log = logging.getLogger(__name__)


# =============================================================================
# Interfaces
# =============================================================================


class CredentialRegistry(ABC):
    """Ledger operations on document credentials."""

    configured: bool = False

    @abstractmethod
    async def issue_credential(
        self, content_id: str, content_hash: str, issuer: str, owner: str
    ) -> LedgerWrite:
        """Record a credential. Raises LedgerError on failure."""

    @abstractmethod
    async def revoke_credential(self, content_hash: str, issuer: str) -> LedgerWrite:
        """Revoke a credential. Raises LedgerError on failure."""

    @abstractmethod
    async def read_credential(self, content_hash: str) -> Optional[LedgerCredential]:
        """Read a credential; never raises."""


class IdentityRegistry(ABC):
    """Ledger operations on decentralized identities."""

    configured: bool = False

    @abstractmethod
    async def issue_identity(self, metadata_ref: str, name: str, owner: str) -> LedgerWrite:
        """Create an identity. Raises LedgerError on failure."""

    @abstractmethod
    async def read_identity(self, owner: str) -> Optional[LedgerIdentity]:
        """Read an identity; never raises."""


# =============================================================================
# Fallback implementations
# =============================================================================


class FallbackCredentialRegistry(CredentialRegistry):
    """Continue-without-blockchain mode for credentials."""

    async def issue_credential(
        self, content_id: str, content_hash: str, issuer: str, owner: str
    ) -> LedgerWrite:
        return LedgerWrite(
            txn_id=placeholder_txn_id(),
            record_id=placeholder_record_id(),
            placeholder=True,
        )

    async def revoke_credential(self, content_hash: str, issuer: str) -> LedgerWrite:
        return LedgerWrite(txn_id=placeholder_txn_id(), placeholder=True)

    async def read_credential(self, content_hash: str) -> Optional[LedgerCredential]:
        return None


class FallbackIdentityRegistry(IdentityRegistry):
    """Continue-without-blockchain mode for identities."""

    async def issue_identity(self, metadata_ref: str, name: str, owner: str) -> LedgerWrite:
        return LedgerWrite(
            txn_id=placeholder_txn_id(),
            record_id=placeholder_record_id(),
            placeholder=True,
        )

    async def read_identity(self, owner: str) -> Optional[LedgerIdentity]:
        return None


# =============================================================================
# Contract implementations
# =============================================================================


class TransactionSender:
    """Sends contract transactions and waits for their receipts.

    With a local signer the transaction is built, signed and sent raw.
    Without one it is sent with ``transact`` from a node-managed account.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        account: Optional[Any] = None,
        chain_id: Optional[int] = None,
        receipt_timeout: float = 120.0,
    ):
        self._w3 = w3
        self._account = account
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout

    async def send(self, fn: Any, sender: str) -> Any:
        if self._account is not None:
            address = self._account.address
            tx_params = {
                "from": address,
                "nonce": await self._w3.eth.get_transaction_count(address),
            }
            if self._chain_id is not None:
                tx_params["chainId"] = self._chain_id
            tx = await fn.build_transaction(tx_params)
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        else:
            tx_hash = await fn.transact({"from": AsyncWeb3.to_checksum_address(sender)})

        return await self._w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._receipt_timeout
        )


def _event_arg(contract: Any, event_name: str, receipt: Any, arg: str) -> Optional[int]:
    """Extract an integer argument from the first matching event in a receipt."""
    events = getattr(contract.events, event_name)().process_receipt(receipt, errors=DISCARD)
    if not events:
        return None
    value = events[0]["args"].get(arg)
    return int(value) if value is not None else None


class ContractCredentialRegistry(CredentialRegistry):
    """Credential store contract."""

    configured = True

    def __init__(self, contract: Any, sender: TransactionSender):
        self._contract = contract
        self._sender = sender

    async def issue_credential(
        self, content_id: str, content_hash: str, issuer: str, owner: str
    ) -> LedgerWrite:
        try:
            fn = self._contract.functions.storeCredential(
                content_id,
                content_hash,
                AsyncWeb3.to_checksum_address(issuer),
                AsyncWeb3.to_checksum_address(owner),
            )
            receipt = await self._sender.send(fn, sender=issuer)
            credential_id = _event_arg(self._contract, "CredentialStored", receipt, "credentialId")
        except Exception as e:
            log.error(f"Blockchain credential storage error: {e}")
            raise LedgerError(f"Failed to store credential on blockchain: {e}") from e

        return LedgerWrite(
            txn_id=AsyncWeb3.to_hex(receipt["transactionHash"]),
            record_id=credential_id,
        )

    async def revoke_credential(self, content_hash: str, issuer: str) -> LedgerWrite:
        try:
            fn = self._contract.functions.revokeCredential(content_hash)
            receipt = await self._sender.send(fn, sender=issuer)
        except Exception as e:
            log.error(f"Blockchain credential revocation error: {e}")
            raise LedgerError(f"Failed to revoke credential on blockchain: {e}") from e

        return LedgerWrite(txn_id=AsyncWeb3.to_hex(receipt["transactionHash"]))

    async def read_credential(self, content_hash: str) -> Optional[LedgerCredential]:
        try:
            is_valid, issuer, owner, timestamp = await self._contract.functions.verifyCredential(
                content_hash
            ).call()
        except Exception as e:
            log.error(f"Blockchain credential verification error: {e}")
            return LedgerCredential.invalid()

        return LedgerCredential(
            is_valid=bool(is_valid),
            issuer=issuer.lower() if issuer else None,
            owner=owner.lower() if owner else None,
            timestamp=int(timestamp),
        )


class ContractIdentityRegistry(IdentityRegistry):
    """DID registry contract."""

    configured = True

    def __init__(self, contract: Any, sender: TransactionSender):
        self._contract = contract
        self._sender = sender

    async def issue_identity(self, metadata_ref: str, name: str, owner: str) -> LedgerWrite:
        try:
            fn = self._contract.functions.createDID(metadata_ref, name)
            receipt = await self._sender.send(fn, sender=owner)
            identity_id = _event_arg(self._contract, "DIDCreated", receipt, "didId")
        except Exception as e:
            log.error(f"Blockchain DID creation error: {e}")
            raise LedgerError(f"Failed to create DID on blockchain: {e}") from e

        return LedgerWrite(
            txn_id=AsyncWeb3.to_hex(receipt["transactionHash"]),
            record_id=identity_id,
        )

    async def read_identity(self, owner: str) -> Optional[LedgerIdentity]:
        try:
            identity_id, metadata_ref, name, created_at = await self._contract.functions.getDID(
                AsyncWeb3.to_checksum_address(owner)
            ).call()
        except Exception as e:
            log.error(f"Blockchain DID retrieval error: {e}")
            return None

        return LedgerIdentity(
            identity_id=int(identity_id),
            metadata_ref=metadata_ref,
            name=name,
            created_at=int(created_at),
        )
