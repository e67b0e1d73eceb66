"""Listing Rules — draft validation and the pending → approved | rejected machine.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Only PENDING may transition; APPROVED and REJECTED are terminal
    - Price must be strictly positive; title, description and image_ref non-blank
    - Re-approving an approved listing is an InvalidTransition, not a no-op

Design Decisions:
    - Decimal prices quantized to cents at the boundary
"""

from decimal import Decimal, InvalidOperation

from shemarket.core.domain_types import ListingStatus
from shemarket.core.errors import InvalidTransitionError, MarketValidationError

_CENTS = Decimal("0.01")

_REQUIRED_TEXT_FIELDS = ("title", "description", "image_ref")

_LISTING_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.PENDING: frozenset({ListingStatus.APPROVED, ListingStatus.REJECTED}),
    ListingStatus.APPROVED: frozenset(),
    ListingStatus.REJECTED: frozenset(),
}


def normalize_price(price) -> Decimal:
    """Coerce to a cent-quantized Decimal; reject non-numeric and non-positive values."""
    if price is None or isinstance(price, bool):
        raise MarketValidationError("price is required", "price")
    try:
        value = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise MarketValidationError("price must be a number", "price")
    if not value.is_finite() or value <= 0:
        raise MarketValidationError("price must be greater than zero", "price")
    return value.quantize(_CENTS)


def validate_listing_draft(draft: dict) -> dict:
    """Return a cleaned draft or raise MarketValidationError on the first bad field."""
    cleaned = {}
    for name in _REQUIRED_TEXT_FIELDS:
        value = draft.get(name)
        if value is None or not str(value).strip():
            if name == "image_ref":
                raise MarketValidationError("an image is required", name)
            raise MarketValidationError(f"{name} is required", name)
        cleaned[name] = str(value).strip()
    cleaned["price"] = normalize_price(draft.get("price"))
    return cleaned


def validate_listing_changes(changes: dict) -> dict:
    """Validate a partial edit: only fields present are checked."""
    cleaned = {}
    for name in _REQUIRED_TEXT_FIELDS:
        if name in changes and changes[name] is not None:
            value = str(changes[name]).strip()
            if not value:
                raise MarketValidationError(f"{name} cannot be blank", name)
            cleaned[name] = value
    if changes.get("price") is not None:
        cleaned["price"] = normalize_price(changes["price"])
    if not cleaned:
        raise MarketValidationError("no changes supplied", "body")
    return cleaned


def can_transition_listing(current: ListingStatus, target: ListingStatus) -> bool:
    return target in _LISTING_TRANSITIONS[current]


def check_listing_transition(current: ListingStatus, target: ListingStatus) -> None:
    if not can_transition_listing(current, target):
        raise InvalidTransitionError("Listing", current.value, target.value)
