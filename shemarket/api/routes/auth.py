"""Auth Routes — register, login, logout.

Invariants:
    - Login returns the raw bearer token exactly once
    - Logout revokes only the presented token
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from shemarket.api.dependencies import get_account_service, get_bearer_token
from shemarket.schemas.account import (
    IdentityResponse, LoginRequest, RegisterRequest, SessionResponse,
)
from shemarket.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register", response_model=IdentityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Create an identity. Role is derived, never requested."""
    identity = await accounts.register(
        email=body.email,
        password=body.password,
        display_name=body.display_name,
        phone=body.phone,
        address=body.address,
        is_seller=body.is_seller,
    )
    return IdentityResponse.model_validate(identity)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    token, identity = await accounts.login(body.email, body.password)
    return SessionResponse(
        token=token, identity=IdentityResponse.model_validate(identity),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_bearer_token),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
