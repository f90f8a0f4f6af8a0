"""Credential storage and the verification orchestrator."""

from docvault.credentials.orchestrator import (
    LedgerVerdict,
    UploadResult,
    VerificationOrchestrator,
    VerificationResult,
)
from docvault.credentials.store import CredentialStore

__all__ = [
    "CredentialStore",
    "LedgerVerdict",
    "UploadResult",
    "VerificationOrchestrator",
    "VerificationResult",
]
