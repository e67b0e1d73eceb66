"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - IdentityId, ListingId, OrderId, ConversationId, MessageId wrap UUIDs
    - All valid states encoded as Enums — no raw string matching in rules
    - Enum values are the strings persisted in the `status` / role columns

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

IdentityId = NewType("IdentityId", UUID)
ListingId = NewType("ListingId", UUID)
OrderId = NewType("OrderId", UUID)
ConversationId = NewType("ConversationId", UUID)
MessageId = NewType("MessageId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Derived caller role. Never stored as free text."""
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class ListingStatus(str, Enum):
    """Listing lifecycle — REJECTED is never persisted (rejected rows are deleted)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OrderStatus(str, Enum):
    """Order fulfillment lifecycle — maps to DB `status` column."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Roles allowed to trade (submit listings, place orders). Admin moderates.
TRADING_ROLES = frozenset({Role.BUYER, Role.SELLER})
