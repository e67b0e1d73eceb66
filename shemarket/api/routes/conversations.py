"""Conversation Routes — first contact, message posting, pull and SSE message feeds.

Invariants:
    - Pull (GET /messages?after_seq=) and stream (GET /stream) return the same
      ordering: seq ascending, with sent_at non-decreasing along it
    - Stream event ids are message seq numbers; Last-Event-ID resumes after it
    - Each stream poll uses its own DB session (the request session may already
      be closed while the response streams)

Design Decisions:
    - Polling SSE over DB notifications: works identically on PostgreSQL and SQLite
    - Stream closes after `window` seconds; clients reconnect with Last-Event-ID
"""

import asyncio
import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import StreamingResponse

from shemarket.api.dependencies import (
    get_conversation_directory, get_current_identity,
)
from shemarket.config import Settings, get_settings
from shemarket.core.errors import MarketError
from shemarket.core.identity import Identity
from shemarket.infrastructure import database
from shemarket.infrastructure.database import BoundedStore
from shemarket.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    ConversationSummaryResponse,
    MessageCreate,
    MessageResponse,
)
from shemarket.services.conversation_directory import ConversationDirectory

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def _sse_line(event: str, data: dict, event_id: int | None = None) -> str:
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.append(f"event: {event}")
    lines.append(f"data: {json.dumps(data, ensure_ascii=False)}")
    return "\n".join(lines) + "\n\n"


@router.post("", response_model=ConversationResponse)
async def get_or_create_conversation(
    body: ConversationCreate,
    identity: Identity = Depends(get_current_identity),
    directory: ConversationDirectory = Depends(get_conversation_directory),
):
    """Return the caller's thread with `participant_id`, creating it on first contact."""
    conversation = await directory.get_or_create(identity, body.participant_id)
    return ConversationResponse.model_validate(conversation)


@router.get("", response_model=list[ConversationSummaryResponse])
async def list_conversations(
    identity: Identity = Depends(get_current_identity),
    directory: ConversationDirectory = Depends(get_conversation_directory),
):
    return [
        ConversationSummaryResponse(
            id=s.conversation.id,
            other_participant_id=s.other_id,
            other_participant_name=s.other_name,
            created_at=s.conversation.created_at,
        )
        for s in await directory.list_conversations(identity)
    ]


@router.post(
    "/{conversation_id}/messages", response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    conversation_id: UUID,
    body: MessageCreate,
    identity: Identity = Depends(get_current_identity),
    directory: ConversationDirectory = Depends(get_conversation_directory),
):
    message = await directory.post_message(identity, conversation_id, body.text)
    return MessageResponse.model_validate(message)


@router.get(
    "/{conversation_id}/messages", response_model=list[MessageResponse],
)
async def list_messages(
    conversation_id: UUID,
    after_seq: int | None = Query(None, ge=0),
    limit: int | None = Query(None, ge=1, le=500),
    identity: Identity = Depends(get_current_identity),
    directory: ConversationDirectory = Depends(get_conversation_directory),
):
    messages = await directory.list_messages(
        identity, conversation_id, after_seq=after_seq, limit=limit,
    )
    return [MessageResponse.model_validate(m) for m in messages]


@router.get("/{conversation_id}/stream")
async def stream_messages(
    conversation_id: UUID,
    window: float = Query(30.0, gt=0, le=300),
    last_event_id: int | None = Header(None, ge=0),
    identity: Identity = Depends(get_current_identity),
    directory: ConversationDirectory = Depends(get_conversation_directory),
    settings: Settings = Depends(get_settings),
):
    """SSE feed of new messages, polled from the store."""
    # Participant check up front so a stranger gets 403, not an empty stream
    await directory.list_messages(identity, conversation_id, limit=1)
    manager = database.db_manager
    if manager is None:
        raise RuntimeError("Database not initialized")

    async def event_generator():
        cursor = last_event_id
        loop = asyncio.get_running_loop()
        deadline = loop.time() + window
        try:
            while True:
                async with manager.session() as db:
                    poller = ConversationDirectory(
                        BoundedStore(db, settings.store_timeout_seconds),
                    )
                    batch = await poller.list_messages(
                        identity, conversation_id, after_seq=cursor,
                    )
                for message in batch:
                    payload = MessageResponse.model_validate(message)
                    yield _sse_line(
                        "message", payload.model_dump(mode="json"), message.seq,
                    )
                    cursor = max(cursor or 0, message.seq)
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                await asyncio.sleep(
                    min(settings.message_poll_interval_seconds, remaining),
                )
            yield _sse_line("done", {"cursor": cursor})
        except MarketError as e:
            logger.warning(
                f"Message stream aborted: {e.message}",
                extra={"conversation_id": conversation_id, "error_code": e.code},
            )
            yield _sse_line("error", e.to_response()["error"])
        except asyncio.CancelledError:
            logger.info(
                "Client disconnected from message stream",
                extra={"conversation_id": conversation_id},
            )
            return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
