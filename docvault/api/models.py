"""API models for DocVault.

Pydantic models for API requests and responses. JSON field names are
camelCase; Python attributes stay snake_case.

Required request fields are declared optional here so that missing input is
reported by the service layer as a 400, not a schema 422.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Models
# =============================================================================


class IssueCredentialRequest(CamelModel):
    """Request to issue a credential for content already in the content store."""

    content_id: Optional[str] = Field(None, description="IPFS CID of the document")
    content_hash: Optional[str] = Field(None, description="SHA-256 hex digest of the document")
    issuer: Optional[str] = Field(None, description="Issuer account")
    owner: Optional[str] = Field(None, description="Owner account")
    title: Optional[str] = Field(None, description="Document title")
    description: Optional[str] = Field(None, description="Free-text description")
    category: Optional[str] = Field(
        None, description="certificate, diploma, license, identity or other"
    )
    file_name: Optional[str] = Field(None, description="Original file name")
    file_size: Optional[int] = Field(None, description="File size in bytes")
    file_type: Optional[str] = Field(None, description="MIME type")


class VerifyCredentialRequest(CamelModel):
    """Request to verify a credential by any one identifier."""

    content_id: Optional[str] = Field(None, description="IPFS CID")
    content_hash: Optional[str] = Field(None, description="SHA-256 hex digest")
    txn_id: Optional[str] = Field(None, description="Ledger transaction id")


class RevokeCredentialRequest(CamelModel):
    """Request to revoke a credential."""

    content_hash: Optional[str] = Field(None, description="SHA-256 hex digest")
    issuer: Optional[str] = Field(None, description="Account of the original issuer")


class CreateDIDRequest(CamelModel):
    """Request to create a decentralized identity."""

    wallet_address: Optional[str] = Field(None, description="Wallet account")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    organization: Optional[str] = Field(None, description="Organization name")


class UpsertUserRequest(CamelModel):
    """Request to create or update a user profile."""

    wallet_address: Optional[str] = Field(None, description="Wallet account")
    name: Optional[str] = None
    email: Optional[str] = None
    organization: Optional[str] = None
    role: Optional[str] = Field(None, description="user, verifier or issuer")


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(CamelModel):
    """Service health."""

    ok: bool
    ledger_configured: bool = Field(..., description="At least one contract is configured")
    pinning_configured: bool = Field(..., description="Pinata credentials are configured")


class CredentialResponse(CamelModel):
    """A stored credential."""

    id: str
    credential_id: Optional[int] = None
    content_id: str
    content_hash: str
    ledger_txn_id: Optional[str] = None
    issuer: str
    owner: str
    title: str
    description: Optional[str] = None
    category: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    status: str
    verified: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CredentialListResponse(CamelModel):
    """Credentials owned by an account, newest first."""

    count: int
    data: list[CredentialResponse]


class VerificationResponse(CamelModel):
    """Verification verdict with supporting evidence."""

    is_valid: bool
    credential: Optional[CredentialResponse] = None
    ledger_data: Optional[dict[str, Any]] = None
    ledger_verdict: str = Field(..., description="confirmed, unconfirmed or contradicted")


class GatewayUrlsResponse(CamelModel):
    """Every known gateway URL for a CID."""

    primary: str
    public: list[str]
    protocol_uri: str


class UploadResponse(CamelModel):
    """Result of a raw content upload."""

    filename: str
    content_id: str
    content_hash: str
    txn_id: str
    credential_id: Optional[int] = None
    size: int
    gateway_url: str
    all_gateways: GatewayUrlsResponse
    ledger_stored: bool


class PinResponse(CamelModel):
    """Result of pinning an existing CID."""

    content_id: str
    pinned: bool


class UserResponse(CamelModel):
    """User profile."""

    id: str
    account: str
    did: Optional[str] = None
    identity_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    organization: Optional[str] = None
    role: str
    metadata_ref: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UserProfileResponse(UserResponse):
    """User profile with the number of active credentials owned."""

    credentials_count: int


class ActivityItem(CamelModel):
    id: str
    action: str
    document: str
    category: Optional[str] = None
    time: Optional[str] = None


class UserStatsResponse(CamelModel):
    """Per-account document statistics."""

    total_documents: int
    verified_documents: int
    recent_activity: list[ActivityItem]


class CreateDIDResponse(CamelModel):
    """Result of DID creation."""

    did: str
    identity_id: Optional[int] = None
    metadata_ref: str
    txn_id: str
    user: UserResponse


class DIDResponse(CamelModel):
    """A DID profile with the ledger's view of it."""

    did: str
    identity_id: Optional[int] = None
    metadata_ref: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    organization: Optional[str] = None
    ledger_data: Optional[dict[str, Any]] = None
    created_at: Optional[str] = None


class LogEntryResponse(CamelModel):
    """One event log entry."""

    id: int
    event_type: str
    account: str
    credential_ref: Optional[str] = None
    content_id: Optional[str] = None
    content_hash: Optional[str] = None
    ledger_txn_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    success: bool
    error: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[str] = None


class LogListResponse(CamelModel):
    count: int
    data: list[LogEntryResponse]
