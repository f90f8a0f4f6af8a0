"""Content API endpoints: upload, download, gateway URLs and pinning."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from docvault import config
from docvault.api.deps import get_orchestrator, get_request_context, http_error
from docvault.api.models import GatewayUrlsResponse, PinResponse, UploadResponse
from docvault.audit.log import RequestContext
from docvault.core.exceptions import ContentStoreError, DocVaultError
from docvault.credentials.orchestrator import VerificationOrchestrator
from docvault.ipfs.client import ContentStoreClient, get_content_store

log = logging.getLogger(__name__)
router = APIRouter(prefix="/content", tags=["content"])


@router.post("/upload", response_model=UploadResponse)
async def upload_content(
    file: Optional[UploadFile] = File(None),
    walletAddress: Optional[str] = Form(None),
    wallet_address: Optional[str] = Form(None),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> UploadResponse:
    """Upload a file to IPFS and anchor its hash on the ledger.

    Accepts JPEG, PNG, PDF and plain text up to the configured size limit.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    account = wallet_address or walletAddress
    if not account:
        raise HTTPException(status_code=400, detail="Wallet address is required")

    content_type = (file.content_type or "").split(";")[0].strip()
    if content_type not in config.ALLOWED_UPLOAD_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only JPEG, PNG, PDF, and TXT files are allowed.",
        )

    data = await file.read()
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {config.MAX_UPLOAD_BYTES} bytes)",
        )

    try:
        result = await orchestrator.upload_content(
            data,
            filename=file.filename or "file",
            content_type=content_type,
            account=account,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e, upstream_status=500) from e

    return UploadResponse.model_validate(result.to_dict())


@router.get("/{content_id}")
async def download_content(
    content_id: str,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> Response:
    """Download content by CID from the local node or a public gateway."""
    try:
        data = await orchestrator.download_content(content_id, context=context)
    except DocVaultError as e:
        raise http_error(e, upstream_status=500) from e

    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{content_id}"'},
    )


@router.get("/{content_id}/gateways", response_model=GatewayUrlsResponse)
def get_gateways(
    content_id: str,
    content_store: ContentStoreClient = Depends(get_content_store),
) -> GatewayUrlsResponse:
    """All gateway URLs through which a CID can be fetched."""
    return GatewayUrlsResponse.model_validate(content_store.all_gateway_urls(content_id).to_dict())


@router.post("/{content_id}/pin", response_model=PinResponse)
async def pin_content(
    content_id: str,
    name: Optional[str] = None,
    content_store: ContentStoreClient = Depends(get_content_store),
) -> PinResponse:
    """Pin a CID that already exists on the network to Pinata."""
    if not content_store.pinning_configured:
        raise HTTPException(status_code=503, detail="Pinning service not configured")
    try:
        pinned_cid = await content_store.pin_existing(content_id, name=name)
    except ContentStoreError as e:
        raise http_error(e) from e

    return PinResponse(content_id=pinned_cid, pinned=True)
