"""DID API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from docvault.api.deps import get_identity_service, get_request_context, http_error
from docvault.api.models import CreateDIDRequest, CreateDIDResponse, DIDResponse
from docvault.audit.log import RequestContext
from docvault.core.exceptions import DocVaultError
from docvault.identity.service import IdentityService

log = logging.getLogger(__name__)
router = APIRouter(prefix="/did", tags=["identity"])


@router.post("/create", response_model=CreateDIDResponse, status_code=201)
async def create_did(
    body: CreateDIDRequest,
    service: IdentityService = Depends(get_identity_service),
    context: RequestContext = Depends(get_request_context),
) -> CreateDIDResponse:
    """Create a DID for a wallet account.

    Uploads the identity metadata to IPFS and registers it on the DID registry.
    """
    try:
        result = await service.create_identity(
            account=body.wallet_address,
            name=body.name,
            email=body.email,
            organization=body.organization,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return CreateDIDResponse.model_validate(result)


@router.get("/{account}", response_model=DIDResponse)
async def get_did(
    account: str,
    service: IdentityService = Depends(get_identity_service),
) -> DIDResponse:
    """Get the DID for a wallet account."""
    identity = await service.get_identity(account)
    if identity is None:
        raise HTTPException(status_code=404, detail="DID not found")
    return DIDResponse.model_validate(identity)
