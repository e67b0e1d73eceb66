"""Order Enforcement — tests for the fulfillment state machine.

Tests cover:
    - Forward moves allowed, including skips
    - Backward and same-status moves rejected
    - Cancel reachable from every non-terminal status
    - DELIVERED and CANCELLED are terminal
"""

import pytest

from shemarket.core.domain_types import OrderStatus as S
from shemarket.core.enforce_order import (
    TERMINAL_STATUSES,
    can_transition_order,
    check_order_transition,
    is_terminal,
    reachable_from,
)
from shemarket.core.errors import InvalidTransitionError


# ─── reachable_from ──────────────────────────────────────────────

def test_pending_reaches_everything_else():
    assert reachable_from(S.PENDING) == {
        S.PROCESSING, S.SHIPPED, S.DELIVERED, S.CANCELLED,
    }


def test_shipped_reaches_delivered_or_cancelled():
    assert reachable_from(S.SHIPPED) == {S.DELIVERED, S.CANCELLED}


@pytest.mark.parametrize("status", [S.DELIVERED, S.CANCELLED])
def test_terminal_reaches_nothing(status):
    assert is_terminal(status)
    assert reachable_from(status) == frozenset()


def test_terminal_set():
    assert TERMINAL_STATUSES == {S.DELIVERED, S.CANCELLED}


# ─── can_transition_order ────────────────────────────────────────

@pytest.mark.parametrize("current,target", [
    (S.PENDING, S.PROCESSING),
    (S.PENDING, S.SHIPPED),
    (S.PROCESSING, S.DELIVERED),
    (S.PROCESSING, S.CANCELLED),
    (S.SHIPPED, S.CANCELLED),
])
def test_allowed_moves(current, target):
    assert can_transition_order(current, target)


@pytest.mark.parametrize("current,target", [
    (S.SHIPPED, S.PROCESSING),
    (S.PROCESSING, S.PENDING),
    (S.DELIVERED, S.SHIPPED),
    (S.DELIVERED, S.CANCELLED),
    (S.CANCELLED, S.PENDING),
])
def test_refused_moves(current, target):
    assert not can_transition_order(current, target)


@pytest.mark.parametrize("status", list(S))
def test_same_status_never_allowed(status):
    assert not can_transition_order(status, status)


def test_check_raises_with_both_statuses():
    with pytest.raises(InvalidTransitionError) as exc:
        check_order_transition(S.DELIVERED, S.SHIPPED)
    assert exc.value.message == "Order cannot move from 'delivered' to 'shipped'"
    assert exc.value.http_status == 400
