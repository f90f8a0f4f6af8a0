"""Credential API endpoints: issue, verify, revoke and lookup."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from docvault.api.deps import get_orchestrator, get_request_context, http_error
from docvault.api.models import (
    CredentialListResponse,
    CredentialResponse,
    IssueCredentialRequest,
    RevokeCredentialRequest,
    VerificationResponse,
    VerifyCredentialRequest,
)
from docvault.audit.log import RequestContext
from docvault.core.exceptions import DocVaultError
from docvault.credentials.orchestrator import VerificationOrchestrator
from docvault.credentials.store import CredentialStore
from docvault.db.session import get_db

log = logging.getLogger(__name__)
router = APIRouter(prefix="/credential", tags=["credentials"])


@router.post("/issue", response_model=CredentialResponse, status_code=201)
async def issue_credential(
    body: IssueCredentialRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> CredentialResponse:
    """Issue a credential for content already stored on IPFS."""
    try:
        credential = await orchestrator.issue(
            issuer=body.issuer,
            owner=body.owner,
            title=body.title,
            content_id=body.content_id,
            content_hash=body.content_hash,
            description=body.description,
            category=body.category,
            file_name=body.file_name,
            file_size=body.file_size,
            file_type=body.file_type,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return CredentialResponse.model_validate(credential.to_dict())


@router.post("/issue-file", response_model=CredentialResponse, status_code=201)
async def issue_credential_file(
    file: UploadFile = File(...),
    issuer: Optional[str] = Form(None),
    owner: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> CredentialResponse:
    """Upload a file and issue a credential for it in one call."""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file provided")

    try:
        credential = await orchestrator.issue(
            issuer=issuer,
            owner=owner,
            title=title,
            data=data,
            description=description,
            category=category,
            file_name=file.filename,
            file_size=len(data),
            file_type=file.content_type,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return CredentialResponse.model_validate(credential.to_dict())


@router.post("/verify", response_model=VerificationResponse)
async def verify_credential(
    body: VerifyCredentialRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> VerificationResponse:
    """Verify a credential by hash, CID or ledger transaction id."""
    try:
        result = await orchestrator.verify(
            content_id=body.content_id,
            content_hash=body.content_hash,
            txn_id=body.txn_id,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return VerificationResponse.model_validate(result.to_dict())


@router.post("/verify-file", response_model=VerificationResponse)
async def verify_credential_file(
    file: UploadFile = File(...),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> VerificationResponse:
    """Verify a presented file by hashing its contents."""
    data = await file.read()
    try:
        result = await orchestrator.verify_content(data, context=context)
    except DocVaultError as e:
        raise http_error(e) from e

    return VerificationResponse.model_validate(result.to_dict())


@router.post("/revoke", response_model=CredentialResponse)
async def revoke_credential(
    body: RevokeCredentialRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    context: RequestContext = Depends(get_request_context),
) -> CredentialResponse:
    """Revoke a credential. Only the original issuer may revoke."""
    try:
        credential = await orchestrator.revoke(
            content_hash=body.content_hash,
            issuer=body.issuer,
            context=context,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return CredentialResponse.model_validate(credential.to_dict())


@router.get("/owner/{account}", response_model=CredentialListResponse)
def list_owner_credentials(
    account: str,
    db: Session = Depends(get_db),
) -> CredentialListResponse:
    """List credentials owned by an account, newest first."""
    credentials = CredentialStore(db).list_by_owner(account)
    return CredentialListResponse(
        count=len(credentials),
        data=[CredentialResponse.model_validate(c.to_dict()) for c in credentials],
    )


@router.get("/{record_id}", response_model=CredentialResponse)
def get_credential(
    record_id: str,
    db: Session = Depends(get_db),
) -> CredentialResponse:
    """Get a credential by record id."""
    credential = CredentialStore(db).find_by_id(record_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="Credential not found")
    return CredentialResponse.model_validate(credential.to_dict())
