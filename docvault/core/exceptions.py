"""Exception hierarchy for DocVault.

Routers translate these into HTTP status codes:
- ValidationError -> 400
- AuthorizationError -> 403
- NotFoundError -> 404
- PersistenceError -> 500
- UpstreamError (content store, ledger) -> 502 unless the caller absorbs it
"""


class DocVaultError(Exception):
    """Base exception for all DocVault errors."""
    pass


class ValidationError(DocVaultError):
    """Missing or malformed required input."""
    pass


class NotFoundError(DocVaultError):
    """Requested entity does not exist."""
    pass


class AuthorizationError(DocVaultError):
    """Actor is not allowed to perform the operation."""
    pass


# =============================================================================
# Upstream Exceptions
# =============================================================================

class UpstreamError(DocVaultError):
    """An external backend (content store, ledger, gateway) failed."""
    pass


class ContentStoreError(UpstreamError):
    """Every configured content store backend or gateway failed."""
    pass


class LedgerError(UpstreamError):
    """A ledger contract call failed.

    Raised for writes only; reads degrade to an empty or invalid result.
    """
    pass


# =============================================================================
# Persistence Exceptions
# =============================================================================

class PersistenceError(DocVaultError):
    """Record store write failed."""
    pass


class DuplicateCredentialError(PersistenceError):
    """A credential with the same content hash, CID or ledger id exists."""
    pass
