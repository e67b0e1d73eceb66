"""Order Lifecycle Manager — place orders and drive them through fulfillment.

Invariants:
    - Orders are placed only against APPROVED listings
    - Title, price, image, seller id and buyer contact are snapshotted at placement
    - Only the order's seller changes its status; the move must be reachable
      per core.enforce_order and is applied as compare-and-set on the old status
    - A repeated place() with the same idempotency key returns the first order

Design Decisions:
    - Idempotency enforced by a (buyer_id, idempotency_key) unique constraint:
      racing retries converge after IntegrityError instead of double-creating
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from shemarket.core.domain_types import ListingStatus, OrderStatus, TRADING_ROLES
from shemarket.core.enforce_order import check_order_transition
from shemarket.core.errors import (
    ErrorContext, ForbiddenError, InvalidTransitionError, ResourceNotFoundError,
)
from shemarket.core.identity import Identity, require_role
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.listing import Listing
from shemarket.models.order import Order

logger = logging.getLogger(__name__)


class OrderLifecycle:
    """Order state machine owner."""

    def __init__(self, store: BoundedStore):
        self.store = store

    async def place(
        self,
        buyer: Identity,
        listing_id: UUID,
        idempotency_key: str | None = None,
    ) -> Order:
        require_role(buyer, TRADING_ROLES)
        if idempotency_key:
            existing = await self._find_by_key(buyer.id, idempotency_key)
            if existing is not None:
                return existing

        listing = await self.store.get(Listing, listing_id)
        if listing is None or listing.status != ListingStatus.APPROVED.value:
            raise ResourceNotFoundError("Listing", str(listing_id))

        now = datetime.now(timezone.utc)
        order = Order(
            listing_id=listing.id,
            buyer_id=buyer.id,
            seller_id=listing.owner_id,
            listing_title=listing.title,
            listing_price=listing.price,
            listing_image_ref=listing.image_ref,
            buyer_name=buyer.display_name,
            buyer_phone=buyer.phone,
            buyer_address=buyer.address,
            idempotency_key=idempotency_key,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        self.store.add(order)
        try:
            await self.store.commit()
        except IntegrityError:
            await self.store.rollback()
            if not idempotency_key:
                raise
            # A concurrent retry with the same key won the insert
            existing = await self._find_by_key(buyer.id, idempotency_key)
            if existing is None:
                raise
            return existing
        logger.info(
            "Order placed",
            extra={
                "order_id": order.id, "listing_id": listing.id,
                "identity_id": buyer.id,
            },
        )
        return order

    async def update_status(
        self, seller: Identity, order_id: UUID, new_status: OrderStatus,
    ) -> Order:
        order = await self._get_or_404(order_id)
        if order.seller_id != seller.id:
            raise ForbiddenError(
                "Only the seller of this order may change its status",
                ErrorContext(identity_id=str(seller.id), resource_id=str(order_id)),
            )
        observed = OrderStatus(order.status)
        check_order_transition(observed, new_status)

        result = await self.store.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == observed.value)
            .values(status=new_status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.store.rollback()
            current = await self._get_or_404(order_id)
            logger.warning(
                "Order transition lost a race",
                extra={
                    "order_id": order_id,
                    "from_status": current.status, "to_status": new_status.value,
                },
            )
            raise InvalidTransitionError("Order", current.status, new_status.value)
        await self.store.commit()
        logger.info(
            "Order status changed",
            extra={
                "order_id": order_id, "identity_id": seller.id,
                "from_status": observed.value, "to_status": new_status.value,
            },
        )
        return await self._get_or_404(order_id)

    async def list_for_buyer(self, buyer: Identity) -> list[Order]:
        return await self.store.scalars(
            select(Order)
            .where(Order.buyer_id == buyer.id)
            .order_by(Order.created_at.desc())
        )

    async def list_for_seller(self, seller: Identity) -> list[Order]:
        return await self.store.scalars(
            select(Order)
            .where(Order.seller_id == seller.id)
            .order_by(Order.created_at.desc())
        )

    async def get_order(self, identity: Identity, order_id: UUID) -> Order:
        order = await self._get_or_404(order_id)
        if identity.id not in (order.buyer_id, order.seller_id):
            raise ForbiddenError(
                "Only the buyer or seller may view this order",
                ErrorContext(identity_id=str(identity.id), resource_id=str(order_id)),
            )
        return order

    async def _find_by_key(self, buyer_id: UUID, key: str) -> Order | None:
        return await self.store.scalar(
            select(Order).where(
                Order.buyer_id == buyer_id, Order.idempotency_key == key,
            )
        )

    async def _get_or_404(self, order_id: UUID) -> Order:
        order = await self.store.scalar(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        if order is None:
            raise ResourceNotFoundError("Order", str(order_id))
        return order
