"""
Trip Track Backend — Conversation SQLAlchemy Model
====================================================

What:  ORM model for `conversations` and their participant set.

Table Design Rationale:
    - conversation_participants: (conversation_id, user_id) composite key.
    - participant_key: the sorted, comma-joined participant ids. Two
      conversations have the same participant set exactly when their keys
      are equal, so the idempotent create is a single indexed lookup.
      The index is not unique: uniqueness is a service-level rule.
    - last_message_id: pointer to the newest message, moved by
      ConversationService.update_last_message. Plain column without a
      foreign key so conversations and messages do not form a cycle.
    - updated_at: bumped whenever the pointer moves; listings sort on it.
"""

import uuid
from typing import TYPE_CHECKING, Iterable, List, Optional

from sqlalchemy import Column, ForeignKey, Index, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from triptrack.database import Base
from triptrack.models.mixins import IdMixin, TimestampMixin

if TYPE_CHECKING:
    from triptrack.models.message import Message
    from triptrack.models.user import User


conversation_participants = Table(
    "conversation_participants",
    Base.metadata,
    Column("conversation_id", Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)


def make_participant_key(participant_ids: Iterable[uuid.UUID]) -> str:
    """Order-independent key for a participant set."""
    return ",".join(sorted({str(pid) for pid in participant_ids}))


class Conversation(IdMixin, TimestampMixin, Base):
    """A durable grouping of two or more users exchanging messages."""

    __tablename__ = "conversations"

    participant_key: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    last_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)

    participants: Mapped[List["User"]] = relationship(
        "User",
        secondary=conversation_participants,
    )
    last_message: Mapped[Optional["Message"]] = relationship(
        "Message",
        primaryjoin="foreign(Conversation.last_message_id) == Message.id",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_conversations_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, participants='{self.participant_key}')>"
