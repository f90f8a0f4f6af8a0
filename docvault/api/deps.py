"""FastAPI dependencies and error translation shared by the routers."""
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from docvault.audit.log import EventLog, RequestContext
from docvault.core.exceptions import (
    AuthorizationError,
    DocVaultError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from docvault.credentials.orchestrator import VerificationOrchestrator
from docvault.credentials.store import CredentialStore
from docvault.db.session import get_db
from docvault.identity.service import IdentityService
from docvault.identity.store import UserStore
from docvault.ipfs.client import ContentStoreClient, get_content_store
from docvault.ledger.client import LedgerClient, get_ledger_client

log = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (PersistenceError, 500),
    (UpstreamError, 502),
)


def http_error(e: DocVaultError, upstream_status: int = 502) -> HTTPException:
    """Translate a domain error into an HTTPException.

    Args:
        e: The domain error
        upstream_status: Status used for content store and ledger failures
    """
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            status = upstream_status if error_type is UpstreamError else code
            break
    if status >= 500:
        log.error(f"Request failed ({status}): {e}")
    return HTTPException(status_code=status, detail=str(e))


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_orchestrator(
    db: Session = Depends(get_db),
    content_store: ContentStoreClient = Depends(get_content_store),
    ledger: LedgerClient = Depends(get_ledger_client),
) -> VerificationOrchestrator:
    return VerificationOrchestrator(
        store=CredentialStore(db),
        content_store=content_store,
        ledger=ledger,
        events=EventLog(db),
    )


def get_identity_service(
    db: Session = Depends(get_db),
    content_store: ContentStoreClient = Depends(get_content_store),
    ledger: LedgerClient = Depends(get_ledger_client),
) -> IdentityService:
    return IdentityService(
        users=UserStore(db),
        credentials=CredentialStore(db),
        content_store=content_store,
        ledger=ledger,
        events=EventLog(db),
    )
