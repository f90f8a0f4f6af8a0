"""Result types returned by the ledger client."""
import secrets
from dataclasses import dataclass
from typing import Optional

from docvault.hashing import random_hex

# Bit width of placeholder record ids; fits a signed 64-bit column
PLACEHOLDER_ID_BITS = 62


def placeholder_record_id() -> int:
    """Random integer standing in for a ledger-assigned id."""
    return secrets.randbits(PLACEHOLDER_ID_BITS)


def placeholder_txn_id() -> str:
    """Random 32-byte hex string formatted as a transaction id."""
    return f"0x{random_hex(32)}"


@dataclass
class LedgerWrite:
    """Outcome of a state-changing ledger call."""

    txn_id: str
    record_id: Optional[int] = None  # credentialId or identityId
    placeholder: bool = False  # True when synthesized instead of mined


@dataclass
class LedgerCredential:
    """Structured view of a credential as recorded on the ledger."""

    is_valid: bool
    issuer: Optional[str]
    owner: Optional[str]
    timestamp: int

    @classmethod
    def invalid(cls) -> "LedgerCredential":
        return cls(is_valid=False, issuer=None, owner=None, timestamp=0)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "issuer": self.issuer,
            "owner": self.owner,
            "timestamp": self.timestamp,
        }


@dataclass
class LedgerIdentity:
    """Identity record as stored in the DID registry."""

    identity_id: int
    metadata_ref: str
    name: str
    created_at: int

    def to_dict(self) -> dict:
        return {
            "identityId": self.identity_id,
            "metadataRef": self.metadata_ref,
            "name": self.name,
            "createdAt": self.created_at,
        }


@dataclass
class LedgerTransaction:
    """Raw transaction view (sender, recipient, mined status)."""

    hash: str
    sender: Optional[str]
    recipient: Optional[str]
    block_number: Optional[int]
    status: Optional[int]
    gas_used: Optional[str]

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    def to_dict(self) -> dict:
        return {
            "hash": self.hash,
            "from": self.sender,
            "to": self.recipient,
            "blockNumber": self.block_number,
            "status": self.status,
            "gasUsed": self.gas_used,
        }
