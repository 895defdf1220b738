"""
Trip Track Backend — Message SQLAlchemy Model
===============================================

What:  ORM model for `messages` and their read receipts.

Table Design Rationale:
    - conversation_id: every message belongs to exactly one conversation.
    - message_reads: (message_id, user_id) composite key, so marking a
      message read twice cannot add a second receipt.
    - Index (conversation_id, created_at): the paginated history query.
"""

import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import Column, ForeignKey, Index, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from triptrack.database import Base
from triptrack.models.mixins import IdMixin, TimestampMixin

if TYPE_CHECKING:
    from triptrack.models.user import User


message_reads = Table(
    "message_reads",
    Base.metadata,
    Column("message_id", Uuid, ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Message(IdMixin, TimestampMixin, Base):
    """
    A message in a conversation.

    Lifecycle:
        Created by a participant; afterwards only read receipts are added.
    """

    __tablename__ = "messages"

    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)

    sender: Mapped["User"] = relationship("User")
    read_by: Mapped[List["User"]] = relationship("User", secondary=message_reads)

    __table_args__ = (
        Index("idx_messages_conversation_created_at", "conversation_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation_id={self.conversation_id})>"
