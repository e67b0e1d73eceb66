"""Conversation Directory — thread lookup, participant checks and message ordering."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import Update, func, select, update

from shemarket.core.errors import (
    ForbiddenError, MarketValidationError, ResourceNotFoundError,
)
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.conversation import Conversation
from shemarket.services.conversation_directory import ConversationDirectory
from shemarket.services.session_authority import as_utc


# ─── get_or_create ───────────────────────────────────────────────

async def test_same_thread_from_either_side(directory, buyer, seller):
    first = await directory.get_or_create(buyer, seller.id)
    second = await directory.get_or_create(seller, buyer.id)
    assert first.id == second.id
    assert set(first.participant_ids) == {buyer.id, seller.id}


async def test_self_conversation_rejected(directory, buyer):
    with pytest.raises(MarketValidationError):
        await directory.get_or_create(buyer, buyer.id)


async def test_unknown_participant_not_found(directory, buyer):
    with pytest.raises(ResourceNotFoundError):
        await directory.get_or_create(buyer, uuid.uuid4())


async def test_concurrent_first_contact_converges(
    test_session_factory, test_db, buyer, seller,
):
    async with test_session_factory() as s1, test_session_factory() as s2:
        a, b = await asyncio.gather(
            ConversationDirectory(BoundedStore(s1)).get_or_create(buyer, seller.id),
            ConversationDirectory(BoundedStore(s2)).get_or_create(seller, buyer.id),
        )
    assert a.id == b.id
    count = await test_db.scalar(select(func.count()).select_from(Conversation))
    assert count == 1


async def test_list_conversations_names_the_other_side(directory, buyer, seller):
    await directory.get_or_create(buyer, seller.id)
    [mine] = await directory.list_conversations(buyer)
    [theirs] = await directory.list_conversations(seller)
    assert mine.other_id == seller.id
    assert mine.other_name == "Sita Seller"
    assert theirs.other_name == "Bina Buyer"


# ─── Messages ────────────────────────────────────────────────────

async def test_messages_in_post_order(directory, buyer, seller):
    thread = await directory.get_or_create(buyer, seller.id)
    await directory.post_message(buyer, thread.id, "Is the lamp available?")
    await directory.post_message(seller, thread.id, "Yes")
    await directory.post_message(buyer, thread.id, "Great")
    messages = await directory.list_messages(seller, thread.id)
    assert [m.text for m in messages] == ["Is the lamp available?", "Yes", "Great"]
    assert [m.sender_name for m in messages] == ["Bina Buyer", "Sita Seller", "Bina Buyer"]
    sent = [m.sent_at for m in messages]
    assert sent == sorted(sent)


async def test_after_seq_returns_only_newer(directory, buyer, seller):
    thread = await directory.get_or_create(buyer, seller.id)
    first = await directory.post_message(buyer, thread.id, "one")
    await directory.post_message(seller, thread.id, "two")
    newer = await directory.list_messages(buyer, thread.id, after_seq=first.seq)
    assert [m.text for m in newer] == ["two"]


class RendezvousStore(BoundedStore):
    """Holds each poster at its first UPDATE until both have read the thread."""

    def __init__(self, db, barrier: asyncio.Barrier):
        super().__init__(db)
        self.barrier = barrier
        self.waited = False

    async def execute(self, statement):
        if isinstance(statement, Update) and not self.waited:
            self.waited = True
            await self.barrier.wait()
        return await super().execute(statement)


async def test_concurrent_posts_stamp_in_seq_order(
    test_session_factory, directory, buyer, seller,
):
    thread = await directory.get_or_create(buyer, seller.id)
    barrier = asyncio.Barrier(2)
    async with test_session_factory() as s1, test_session_factory() as s2:
        await asyncio.gather(
            ConversationDirectory(RendezvousStore(s1, barrier)).post_message(
                buyer, thread.id, "from buyer",
            ),
            ConversationDirectory(RendezvousStore(s2, barrier)).post_message(
                seller, thread.id, "from seller",
            ),
        )
    messages = await directory.list_messages(buyer, thread.id)
    assert {m.text for m in messages} == {"from buyer", "from seller"}
    assert messages[0].seq < messages[1].seq
    assert as_utc(messages[0].sent_at) <= as_utc(messages[1].sent_at)


async def test_post_never_stamps_before_latest_message(
    test_db, directory, buyer, seller,
):
    thread = await directory.get_or_create(buyer, seller.id)
    ahead = datetime.now(timezone.utc) + timedelta(hours=1)
    await test_db.execute(
        update(Conversation)
        .where(Conversation.id == thread.id)
        .values(last_message_at=ahead)
    )
    await test_db.commit()

    message = await directory.post_message(buyer, thread.id, "hello")
    assert as_utc(message.sent_at) == ahead


async def test_cursor_feed_never_goes_back_in_time(
    test_session_factory, directory, buyer, seller,
):
    thread = await directory.get_or_create(buyer, seller.id)
    await directory.post_message(buyer, thread.id, "first")
    [seen] = await directory.list_messages(seller, thread.id)

    async with test_session_factory() as other:
        await ConversationDirectory(BoundedStore(other)).post_message(
            seller, thread.id, "reply",
        )

    newer = await directory.list_messages(seller, thread.id, after_seq=seen.seq)
    assert [m.text for m in newer] == ["reply"]
    assert as_utc(newer[0].sent_at) >= as_utc(seen.sent_at)
    assert await directory.list_messages(seller, thread.id, after_seq=newer[0].seq) == []


async def test_limit_caps_result(directory, buyer, seller):
    thread = await directory.get_or_create(buyer, seller.id)
    for n in range(3):
        await directory.post_message(buyer, thread.id, f"msg {n}")
    assert len(await directory.list_messages(buyer, thread.id, limit=2)) == 2


async def test_blank_message_rejected(directory, buyer, seller):
    thread = await directory.get_or_create(buyer, seller.id)
    with pytest.raises(MarketValidationError):
        await directory.post_message(buyer, thread.id, "   ")
    assert await directory.list_messages(buyer, thread.id) == []


async def test_stranger_cannot_read_or_post(directory, make_identity, buyer, seller):
    thread = await directory.get_or_create(buyer, seller.id)
    stranger = await make_identity("Stranger")
    with pytest.raises(ForbiddenError):
        await directory.post_message(stranger, thread.id, "hello")
    with pytest.raises(ForbiddenError):
        await directory.list_messages(stranger, thread.id)


async def test_unknown_conversation_not_found(directory, buyer):
    with pytest.raises(ResourceNotFoundError):
        await directory.post_message(buyer, uuid.uuid4(), "hello")
