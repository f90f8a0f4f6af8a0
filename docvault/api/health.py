"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends

from docvault.api.models import HealthResponse
from docvault.ipfs.client import ContentStoreClient, get_content_store
from docvault.ledger.client import LedgerClient, get_ledger_client

log = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=HealthResponse)
async def healthz(
    content_store: ContentStoreClient = Depends(get_content_store),
    ledger: LedgerClient = Depends(get_ledger_client),
) -> HealthResponse:
    """Health check endpoint.

    Reports which optional integrations are configured. Unconfigured
    integrations run in fallback mode, so the service is still healthy.
    """
    return HealthResponse(
        ok=True,
        ledger_configured=ledger.configured,
        pinning_configured=content_store.pinning_configured,
    )
