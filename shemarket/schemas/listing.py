"""Listing Schemas — submission, edit, and public listing view.

Invariants:
    - price > 0 validated here and again in core.enforce_listing
    - image_ref is the URL returned by POST /api/v1/uploads
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from shemarket.core.domain_types import ListingStatus


class ListingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=10_000)
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    image_ref: str = Field(min_length=1, max_length=1000)


class ListingUpdate(BaseModel):
    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    image_ref: str | None = Field(None, max_length=1000)


class ListingResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    owner_id: UUID
    title: str
    description: str
    price: Decimal
    image_ref: str
    status: ListingStatus
    created_at: datetime
    updated_at: datetime


class UploadResponse(BaseModel):
    image_ref: str
