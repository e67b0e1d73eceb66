"""Conversation last_message_at; messages read by seq.

Revision ID: 002_last_message
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_last_message"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "conversations",
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.execute(
        "UPDATE conversations SET last_message_at = "
        "(SELECT max(sent_at) FROM messages WHERE messages.conversation_id = conversations.id)"
    )
    op.drop_index("ix_messages_conversation_order", table_name="messages")
    op.create_index(
        "ix_messages_conversation_seq", "messages", ["conversation_id", "seq"],
    )


def downgrade() -> None:
    op.drop_index("ix_messages_conversation_seq", table_name="messages")
    op.create_index(
        "ix_messages_conversation_order", "messages",
        ["conversation_id", "sent_at", "seq"],
    )
    op.drop_column("conversations", "last_message_at")
