"""Conversation Schemas — thread lookup, message posting, message view.

Invariants:
    - MessageCreate.text is kept verbatim; blank text rejected by the service
    - MessageResponse.seq is the pull cursor for ?after_seq=
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ConversationCreate(BaseModel):
    participant_id: UUID


class ConversationResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    participant_a_id: UUID
    participant_b_id: UUID
    created_at: datetime


class ConversationSummaryResponse(BaseModel):
    id: UUID
    other_participant_id: UUID
    other_participant_name: str
    created_at: datetime


class MessageCreate(BaseModel):
    text: str = Field(max_length=5000)


class MessageResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    seq: int
    conversation_id: UUID
    sender_id: UUID
    sender_name: str
    text: str
    sent_at: datetime
