"""Blockchain ledger access for DocVault."""

from docvault.ledger.client import (
    LedgerClient,
    LedgerConfig,
    build_ledger_client,
    get_ledger_client,
    reset_ledger_client,
)
from docvault.ledger.models import (
    LedgerCredential,
    LedgerIdentity,
    LedgerTransaction,
    LedgerWrite,
)

__all__ = [
    "LedgerClient",
    "LedgerConfig",
    "LedgerCredential",
    "LedgerIdentity",
    "LedgerTransaction",
    "LedgerWrite",
    "build_ledger_client",
    "get_ledger_client",
    "reset_ledger_client",
]
