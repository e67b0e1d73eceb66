"""Identity — tests for role derivation and the role gate.

Tests cover:
    - derive_role: reserved admin address wins, case-insensitively
    - derive_role: seller flag otherwise decides seller vs buyer
    - require_role raises ForbiddenError and returns the identity on success
"""

import uuid

import pytest

from shemarket.core.domain_types import Role, TRADING_ROLES
from shemarket.core.errors import ForbiddenError
from shemarket.core.identity import (
    Identity, derive_role, normalize_email, require_role,
)

ADMIN = "admin@shemarket.com"


def _identity(role: Role) -> Identity:
    return Identity(
        id=uuid.uuid4(), email="x@example.com", display_name="X", role=role,
    )


# ─── derive_role ─────────────────────────────────────────────────

def test_admin_address_is_admin():
    assert derive_role("admin@shemarket.com", False, ADMIN) == Role.ADMIN


def test_admin_address_match_ignores_case_and_whitespace():
    assert derive_role("  Admin@SheMarket.com ", False, ADMIN) == Role.ADMIN


def test_admin_address_wins_over_seller_flag():
    assert derive_role(ADMIN, True, ADMIN) == Role.ADMIN


def test_seller_flag_gives_seller():
    assert derive_role("sita@example.com", True, ADMIN) == Role.SELLER


def test_default_is_buyer():
    assert derive_role("bina@example.com", False, ADMIN) == Role.BUYER


def test_normalize_email():
    assert normalize_email("  Bina@Example.COM ") == "bina@example.com"


# ─── require_role ────────────────────────────────────────────────

def test_require_role_returns_identity():
    ident = _identity(Role.SELLER)
    assert require_role(ident, TRADING_ROLES) is ident


def test_require_role_rejects_admin_for_trading():
    with pytest.raises(ForbiddenError) as exc:
        require_role(_identity(Role.ADMIN), TRADING_ROLES)
    assert exc.value.http_status == 403
    assert "admin" in exc.value.message


def test_require_role_rejects_buyer_for_moderation():
    with pytest.raises(ForbiddenError):
        require_role(_identity(Role.BUYER), {Role.ADMIN})


def test_is_admin_property():
    assert _identity(Role.ADMIN).is_admin
    assert not _identity(Role.SELLER).is_admin
