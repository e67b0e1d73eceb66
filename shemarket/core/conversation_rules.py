"""Conversation Rules — canonical participant pairs and message text validation.

Invariants:
    - A conversation has exactly two distinct participants
    - participant_key is identical for (A, B) and (B, A)
    - Message text must contain non-whitespace characters; stored as given
"""

from collections.abc import Iterable
from uuid import UUID

from shemarket.core.errors import ForbiddenError, MarketValidationError


def canonical_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    """Sort a participant pair so storage order is independent of call order."""
    if a == b:
        raise MarketValidationError(
            "a conversation needs two different participants", "participant_id",
        )
    return (a, b) if str(a) < str(b) else (b, a)


def participant_key(a: UUID, b: UUID) -> str:
    first, second = canonical_pair(a, b)
    return f"{first}:{second}"


def check_participant(identity_id: UUID, participants: Iterable[UUID]) -> None:
    if identity_id not in set(participants):
        raise ForbiddenError("Only conversation participants may do this")


def validate_message_text(text: str | None) -> str:
    if text is None or not text.strip():
        raise MarketValidationError("message text cannot be empty", "text")
    return text
