"""Listing Routes — image upload, submission, browsing, moderation, edits.

Invariants:
    - Every route resolves the caller from the bearer token
    - /listings/mine and /listings/pending declared before /listings/{listing_id}
    - Image bytes go to the BlobStore; listings only carry the returned reference
    - At most max_bytes + 1 bytes of an upload are read into memory
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from shemarket.api.dependencies import (
    get_blob_store, get_current_identity, get_listing_lifecycle,
)
from shemarket.core.identity import Identity, require_role
from shemarket.core.domain_types import TRADING_ROLES
from shemarket.core.errors import MarketValidationError
from shemarket.core.repository_protocols import BlobStore
from shemarket.schemas.listing import (
    ListingCreate, ListingResponse, ListingUpdate, UploadResponse,
)
from shemarket.services.listing_lifecycle import ListingLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["listings"])


async def read_capped(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload, stopping one byte past the limit."""
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise MarketValidationError(f"image exceeds {max_bytes} bytes", "image")
    return data


@router.post(
    "/uploads", response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    image: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    blobs: BlobStore = Depends(get_blob_store),
):
    """Store a listing image and return its reference for POST /listings."""
    require_role(identity, TRADING_ROLES)
    data = await read_capped(image, blobs.max_bytes)
    image_ref = await blobs.put(data, image.content_type or "")
    return UploadResponse(image_ref=image_ref)


@router.post(
    "/listings", response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_listing(
    body: ListingCreate,
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    listing = await listings.submit(identity, body.model_dump())
    return ListingResponse.model_validate(listing)


@router.get("/listings", response_model=list[ListingResponse])
async def list_approved_listings(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    """Buyer browsing — approved listings only."""
    rows = await listings.list_approved(limit=limit, offset=offset)
    return [ListingResponse.model_validate(r) for r in rows]


@router.get("/listings/mine", response_model=list[ListingResponse])
async def list_my_listings(
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    rows = await listings.list_by_seller(identity)
    return [ListingResponse.model_validate(r) for r in rows]


@router.get("/listings/pending", response_model=list[ListingResponse])
async def list_pending_listings(
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    """Admin moderation queue, oldest first."""
    rows = await listings.list_pending(identity)
    return [ListingResponse.model_validate(r) for r in rows]


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: UUID,
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    return ListingResponse.model_validate(
        await listings.get_listing(identity, listing_id),
    )


@router.patch("/listings/{listing_id}", response_model=ListingResponse)
async def edit_listing(
    listing_id: UUID,
    body: ListingUpdate,
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    listing = await listings.edit(
        identity, listing_id, body.model_dump(exclude_unset=True),
    )
    return ListingResponse.model_validate(listing)


@router.post("/listings/{listing_id}/approve", response_model=ListingResponse)
async def approve_listing(
    listing_id: UUID,
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    return ListingResponse.model_validate(
        await listings.approve(identity, listing_id),
    )


@router.post(
    "/listings/{listing_id}/reject", status_code=status.HTTP_204_NO_CONTENT,
)
async def reject_listing(
    listing_id: UUID,
    identity: Identity = Depends(get_current_identity),
    listings: ListingLifecycle = Depends(get_listing_lifecycle),
):
    await listings.reject(identity, listing_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
