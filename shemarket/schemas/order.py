"""Order Schemas — placement, status change, and order view with snapshots."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from shemarket.core.domain_types import OrderStatus


class OrderCreate(BaseModel):
    listing_id: UUID
    idempotency_key: str | None = Field(None, min_length=1, max_length=100)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    listing_id: UUID | None
    buyer_id: UUID
    seller_id: UUID
    listing_title: str
    listing_price: Decimal
    listing_image_ref: str
    buyer_name: str
    buyer_phone: str
    buyer_address: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
