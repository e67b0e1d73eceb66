"""Order Routes — placement, buyer/seller order lists, seller status changes.

Invariants:
    - /orders/purchases and /orders/sales are caller-scoped, never global
    - An Idempotency-Key header is an alternative to the body field of the same name
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Header, status

from shemarket.api.dependencies import get_current_identity, get_order_lifecycle
from shemarket.core.identity import Identity
from shemarket.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from shemarket.services.order_lifecycle import OrderLifecycle

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    body: OrderCreate,
    idempotency_key: str | None = Header(None, max_length=100),
    identity: Identity = Depends(get_current_identity),
    orders: OrderLifecycle = Depends(get_order_lifecycle),
):
    order = await orders.place(
        identity, body.listing_id, body.idempotency_key or idempotency_key,
    )
    return OrderResponse.model_validate(order)


@router.get("/purchases", response_model=list[OrderResponse])
async def list_purchases(
    identity: Identity = Depends(get_current_identity),
    orders: OrderLifecycle = Depends(get_order_lifecycle),
):
    return [OrderResponse.model_validate(o) for o in await orders.list_for_buyer(identity)]


@router.get("/sales", response_model=list[OrderResponse])
async def list_sales(
    identity: Identity = Depends(get_current_identity),
    orders: OrderLifecycle = Depends(get_order_lifecycle),
):
    return [OrderResponse.model_validate(o) for o in await orders.list_for_seller(identity)]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    identity: Identity = Depends(get_current_identity),
    orders: OrderLifecycle = Depends(get_order_lifecycle),
):
    return OrderResponse.model_validate(await orders.get_order(identity, order_id))


@router.post("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    body: OrderStatusUpdate,
    identity: Identity = Depends(get_current_identity),
    orders: OrderLifecycle = Depends(get_order_lifecycle),
):
    order = await orders.update_status(identity, order_id, body.status)
    return OrderResponse.model_validate(order)
