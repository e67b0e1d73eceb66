"""Conversation Directory — one thread per unordered identity pair, ordered messages.

Invariants:
    - get_or_create(A, B) and get_or_create(B, A) return the same row, also when
      both run concurrently: the unique participant_key decides, the loser re-reads
    - Only participants post to or read a conversation
    - list_messages is ascending by seq; after_seq returns only newer rows
    - Posts to one conversation are stamped while holding its row, so sent_at
      is non-decreasing in seq and the seq cursor never skips or repeats
    - Messages are insert-only

Design Decisions:
    - get_or_create inserts and re-reads on conflict instead of locking: no
      lock held across round-trips, works with any isolation level
    - post_message takes the row lock with an UPDATE rather than
      SELECT ... FOR UPDATE, which SQLite ignores
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError

from shemarket.core.conversation_rules import (
    canonical_pair, check_participant, participant_key, validate_message_text,
)
from shemarket.core.errors import ErrorContext, ResourceNotFoundError
from shemarket.core.identity import Identity
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.conversation import Conversation
from shemarket.models.message import Message
from shemarket.models.user import User
from shemarket.services.session_authority import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSummary:
    conversation: Conversation
    other_id: UUID
    other_name: str


class ConversationDirectory:
    """Participant-pair lookup and message log."""

    def __init__(self, store: BoundedStore):
        self.store = store

    async def get_or_create(self, identity: Identity, other_id: UUID) -> Conversation:
        key = participant_key(identity.id, other_id)
        existing = await self._find(key)
        if existing is not None:
            return existing
        if await self.store.get(User, other_id) is None:
            raise ResourceNotFoundError("User", str(other_id))

        first, second = canonical_pair(identity.id, other_id)
        conversation = Conversation(
            participant_a_id=first,
            participant_b_id=second,
            participant_key=key,
        )
        self.store.add(conversation)
        try:
            await self.store.commit()
        except IntegrityError:
            await self.store.rollback()
            winner = await self._find(key)
            if winner is None:
                raise
            logger.info(
                "Concurrent first contact converged",
                extra={"conversation_id": winner.id},
            )
            return winner
        logger.info(
            "Conversation created",
            extra={"conversation_id": conversation.id, "identity_id": identity.id},
        )
        return conversation

    async def list_conversations(self, identity: Identity) -> list[ConversationSummary]:
        rows = await self.store.execute(
            select(Conversation, User)
            .join(
                User,
                or_(
                    and_(
                        Conversation.participant_a_id == identity.id,
                        User.id == Conversation.participant_b_id,
                    ),
                    and_(
                        Conversation.participant_b_id == identity.id,
                        User.id == Conversation.participant_a_id,
                    ),
                ),
            )
            .order_by(Conversation.created_at.desc())
        )
        return [
            ConversationSummary(conversation=c, other_id=u.id, other_name=u.display_name)
            for c, u in rows.all()
        ]

    async def post_message(
        self, sender: Identity, conversation_id: UUID, text: str,
    ) -> Message:
        conversation = await self._get_for(sender, conversation_id)
        body = validate_message_text(text)
        sent_at = await self._claim_next_stamp(conversation.id)
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender.id,
            sender_name=sender.display_name,
            text=body,
            sent_at=sent_at,
        )
        self.store.add(message)
        await self.store.commit()
        logger.debug(
            "Message posted",
            extra={"conversation_id": conversation.id, "identity_id": sender.id},
        )
        return message

    async def list_messages(
        self,
        identity: Identity,
        conversation_id: UUID,
        after_seq: int | None = None,
        limit: int | None = None,
    ) -> list[Message]:
        await self._get_for(identity, conversation_id)
        query = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.seq)
        )
        if after_seq is not None:
            query = query.where(Message.seq > after_seq)
        if limit is not None:
            query = query.limit(limit)
        return await self.store.scalars(query)

    async def _find(self, key: str) -> Conversation | None:
        return await self.store.scalar(
            select(Conversation).where(Conversation.participant_key == key),
        )

    async def _get_for(self, identity: Identity, conversation_id: UUID) -> Conversation:
        conversation = await self.store.get(Conversation, conversation_id)
        if conversation is None:
            raise ResourceNotFoundError(
                "Conversation", str(conversation_id),
                ErrorContext(identity_id=str(identity.id)),
            )
        check_participant(identity.id, conversation.participant_ids)
        return conversation

    async def _claim_next_stamp(self, conversation_id: UUID) -> datetime:
        """Write-lock the conversation row and return this post's sent_at.

        The lock is held until commit, so the message inserted under it gets
        a seq above every earlier post and a stamp no older than theirs.
        """
        await self.store.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_message_at=Conversation.last_message_at)
            .execution_options(synchronize_session=False)
        )
        previous = await self.store.scalar(
            select(Conversation.last_message_at)
            .where(Conversation.id == conversation_id)
        )
        sent_at = datetime.now(timezone.utc)
        if previous is not None:
            sent_at = max(sent_at, as_utc(previous))
        await self.store.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_message_at=sent_at)
            .execution_options(synchronize_session=False)
        )
        return sent_at
