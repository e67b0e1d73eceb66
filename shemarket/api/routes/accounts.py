"""Account Routes — caller profile and the admin user directory."""

from fastapi import APIRouter, Depends

from shemarket.api.dependencies import get_account_service, get_current_identity
from shemarket.core.identity import Identity
from shemarket.schemas.account import IdentityResponse, ProfileUpdate
from shemarket.services.account_service import AccountService

router = APIRouter(prefix="/api/v1", tags=["accounts"])


@router.get("/me", response_model=IdentityResponse)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    return IdentityResponse.model_validate(await accounts.get_profile(identity))


@router.patch("/me", response_model=IdentityResponse)
async def update_me(
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    updated = await accounts.update_profile(
        identity, body.model_dump(exclude_unset=True),
    )
    return IdentityResponse.model_validate(updated)


@router.get("/users", response_model=list[IdentityResponse])
async def list_users(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    """Admin-only directory of registered identities."""
    users = await accounts.list_users(identity)
    return [IdentityResponse.model_validate(u) for u in users]
