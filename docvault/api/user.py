"""User profile API endpoints."""

import logging

from fastapi import APIRouter, Depends

from docvault.api.deps import get_identity_service, http_error
from docvault.api.models import (
    UpsertUserRequest,
    UserProfileResponse,
    UserResponse,
    UserStatsResponse,
)
from docvault.core.exceptions import DocVaultError
from docvault.identity.service import IdentityService

log = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["users"])


@router.post("", response_model=UserResponse)
def upsert_user(
    body: UpsertUserRequest,
    service: IdentityService = Depends(get_identity_service),
) -> UserResponse:
    """Create a user profile or update the supplied fields."""
    try:
        user = service.upsert_user(
            account=body.wallet_address,
            name=body.name,
            email=body.email,
            organization=body.organization,
            role=body.role,
        )
    except DocVaultError as e:
        raise http_error(e) from e

    return UserResponse.model_validate(user.to_dict())


@router.get("/{account}", response_model=UserProfileResponse)
def get_user(
    account: str,
    service: IdentityService = Depends(get_identity_service),
) -> UserProfileResponse:
    """Get a user profile with the number of active credentials owned."""
    try:
        return UserProfileResponse.model_validate(service.get_user(account))
    except DocVaultError as e:
        raise http_error(e) from e


@router.get("/{account}/stats", response_model=UserStatsResponse)
def get_user_stats(
    account: str,
    service: IdentityService = Depends(get_identity_service),
) -> UserStatsResponse:
    """Document counts and recent uploads for an account."""
    try:
        return UserStatsResponse.model_validate(service.get_user_stats(account))
    except DocVaultError as e:
        raise http_error(e) from e
