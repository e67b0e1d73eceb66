"""Order Rules — the fulfillment state machine.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Forward moves along pending → processing → shipped → delivered may skip steps
    - CANCELLED is reachable from every non-terminal status
    - DELIVERED and CANCELLED are terminal; same-status moves are rejected
"""

from shemarket.core.domain_types import OrderStatus
from shemarket.core.errors import InvalidTransitionError

FULFILLMENT_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def reachable_from(current: OrderStatus) -> frozenset[OrderStatus]:
    """Every status a seller may move an order to from `current`."""
    if is_terminal(current):
        return frozenset()
    position = FULFILLMENT_SEQUENCE.index(current)
    later = FULFILLMENT_SEQUENCE[position + 1:]
    return frozenset(later) | {OrderStatus.CANCELLED}


def can_transition_order(current: OrderStatus, target: OrderStatus) -> bool:
    return target in reachable_from(current)


def check_order_transition(current: OrderStatus, target: OrderStatus) -> None:
    if not can_transition_order(current, target):
        raise InvalidTransitionError("Order", current.value, target.value)
