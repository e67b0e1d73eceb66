"""Domain Types — enum values are the persisted strings."""

from shemarket.core.domain_types import (
    ListingStatus, OrderStatus, Role, TRADING_ROLES,
)


def test_role_values():
    assert {r.value for r in Role} == {"buyer", "seller", "admin"}


def test_listing_status_values():
    assert ListingStatus("pending") is ListingStatus.PENDING
    assert ListingStatus.APPROVED.value == "approved"


def test_order_status_values():
    assert [s.value for s in OrderStatus] == [
        "pending", "processing", "shipped", "delivered", "cancelled",
    ]


def test_str_enum_compares_to_raw_string():
    assert OrderStatus.SHIPPED == "shipped"


def test_admin_is_not_a_trading_role():
    assert Role.ADMIN not in TRADING_ROLES
    assert TRADING_ROLES == {Role.BUYER, Role.SELLER}
