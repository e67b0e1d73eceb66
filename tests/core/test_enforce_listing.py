"""Listing Enforcement — tests for draft validation and the listing state machine.

Tests cover:
    - normalize_price: cent quantization, non-numeric, zero, negative, bool
    - validate_listing_draft: every required field, first bad field reported
    - validate_listing_changes: partial edits, blank fields, empty edit
    - Transitions: only PENDING moves, APPROVED and REJECTED are terminal
"""

from decimal import Decimal

import pytest

from shemarket.core.domain_types import ListingStatus
from shemarket.core.enforce_listing import (
    can_transition_listing,
    check_listing_transition,
    normalize_price,
    validate_listing_changes,
    validate_listing_draft,
)
from shemarket.core.errors import InvalidTransitionError, MarketValidationError


def _draft(**overrides):
    draft = {
        "title": "Lamp",
        "description": "Brass table lamp",
        "price": 500,
        "image_ref": "/media/lamp.jpg",
    }
    draft.update(overrides)
    return draft


# ─── normalize_price ─────────────────────────────────────────────

def test_price_quantized_to_cents():
    assert normalize_price("19.999") == Decimal("20.00")
    assert normalize_price(500) == Decimal("500.00")


def test_price_accepts_decimal():
    assert normalize_price(Decimal("0.01")) == Decimal("0.01")


@pytest.mark.parametrize("price", [0, -1, "0", "-5.50"])
def test_non_positive_price_rejected(price):
    with pytest.raises(MarketValidationError) as exc:
        normalize_price(price)
    assert exc.value.field == "price"
    assert "greater than zero" in exc.value.message


def test_non_numeric_price_rejected():
    with pytest.raises(MarketValidationError) as exc:
        normalize_price("cheap")
    assert exc.value.message == "price must be a number"


@pytest.mark.parametrize("price", [None, True])
def test_missing_price_rejected(price):
    with pytest.raises(MarketValidationError) as exc:
        normalize_price(price)
    assert exc.value.message == "price is required"


def test_infinite_price_rejected():
    with pytest.raises(MarketValidationError):
        normalize_price("Infinity")


# ─── validate_listing_draft ──────────────────────────────────────

def test_valid_draft_cleaned():
    cleaned = validate_listing_draft(_draft(title="  Lamp  "))
    assert cleaned == {
        "title": "Lamp",
        "description": "Brass table lamp",
        "image_ref": "/media/lamp.jpg",
        "price": Decimal("500.00"),
    }


@pytest.mark.parametrize("field", ["title", "description"])
def test_blank_text_field_rejected(field):
    with pytest.raises(MarketValidationError) as exc:
        validate_listing_draft(_draft(**{field: "   "}))
    assert exc.value.field == field
    assert exc.value.message == f"{field} is required"


def test_missing_image_rejected():
    draft = _draft()
    del draft["image_ref"]
    with pytest.raises(MarketValidationError) as exc:
        validate_listing_draft(draft)
    assert exc.value.message == "an image is required"
    assert exc.value.field == "image_ref"


def test_zero_price_draft_rejected():
    with pytest.raises(MarketValidationError) as exc:
        validate_listing_draft(_draft(price=0))
    assert exc.value.field == "price"


# ─── validate_listing_changes ────────────────────────────────────

def test_partial_change_only_returns_supplied_fields():
    assert validate_listing_changes({"price": "750"}) == {"price": Decimal("750.00")}


def test_none_values_ignored():
    assert validate_listing_changes({"title": "Lamp v2", "description": None}) == {
        "title": "Lamp v2",
    }


def test_blank_change_rejected():
    with pytest.raises(MarketValidationError) as exc:
        validate_listing_changes({"title": " "})
    assert exc.value.message == "title cannot be blank"


def test_empty_change_rejected():
    with pytest.raises(MarketValidationError) as exc:
        validate_listing_changes({})
    assert exc.value.field == "body"


# ─── Transitions ─────────────────────────────────────────────────

def test_pending_can_be_approved_or_rejected():
    assert can_transition_listing(ListingStatus.PENDING, ListingStatus.APPROVED)
    assert can_transition_listing(ListingStatus.PENDING, ListingStatus.REJECTED)


@pytest.mark.parametrize("current", [ListingStatus.APPROVED, ListingStatus.REJECTED])
@pytest.mark.parametrize("target", list(ListingStatus))
def test_terminal_statuses_never_move(current, target):
    assert not can_transition_listing(current, target)


def test_reapprove_raises_invalid_transition():
    with pytest.raises(InvalidTransitionError) as exc:
        check_listing_transition(ListingStatus.APPROVED, ListingStatus.APPROVED)
    assert exc.value.current == "approved"
    assert exc.value.target == "approved"
    assert exc.value.code == "INVALID_TRANSITION"
