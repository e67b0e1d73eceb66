"""Order ORM — a buyer's purchase of one listing, tracked through fulfillment.

Invariants:
    - listing_title / listing_price / listing_image_ref are copied at placement
      and never rewritten; later listing edits do not touch them
    - seller_id copied from Listing.owner_id at placement
    - (buyer_id, idempotency_key) unique: a retried place() cannot double-create
    - listing_id survives listing deletion as NULL (snapshot keeps the history)
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Text, Numeric, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from shemarket.db.base import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint(
            "buyer_id", "idempotency_key", name="uq_orders_buyer_idempotency",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    listing_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("listings.id", ondelete="SET NULL"),
        nullable=True,
    )
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )

    # Listing snapshot
    listing_title: Mapped[str] = mapped_column(String(200), nullable=False)
    listing_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    listing_image_ref: Mapped[str] = mapped_column(String(1000), nullable=False)

    # Buyer contact snapshot (sellers reach buyers from the order)
    buyer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    buyer_phone: Mapped[str] = mapped_column(String(40), nullable=False, default="")
    buyer_address: Mapped[str] = mapped_column(Text, nullable=False, default="")

    idempotency_key: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
