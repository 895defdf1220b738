"""
Trip Track Backend — Message Service
======================================

What:  Message creation, read receipts and conversation history.

Sending a message is two phases:
    1. create_message      writes the message (read_by = {sender})
    2. update_last_message moves the conversation's pointer to it

create_message alone never touches the conversation. send_message runs
both phases and reports a phase-2 failure as LastMessageUpdateError. The
two phases share the request's transaction, so the rollback that follows
that error also discards the phase-1 message.
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from triptrack.database import insert_ignore
from triptrack.exceptions import (
    ConversationNotFoundError,
    LastMessageUpdateError,
    MessageNotFoundError,
    TripTrackError,
    UserNotFoundError,
)
from triptrack.ids import parse_id
from triptrack.models import Conversation, Message, User, message_reads
from triptrack.schemas.common import Page, parse_payload
from triptrack.schemas.message import MessageCreate, MessageResponse
from triptrack.services.conversation_service import conversation_service
from triptrack.services.pagination import paginate

logger = logging.getLogger(__name__)

MESSAGE_LOAD_OPTIONS = (
    selectinload(Message.sender),
    selectinload(Message.read_by),
)


class MessageService:
    """Business logic layer for messages."""

    async def _response(self, db: AsyncSession, message_id: uuid.UUID) -> MessageResponse:
        result = await db.execute(
            select(Message)
            .where(Message.id == message_id)
            .options(*MESSAGE_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        message = result.scalar_one_or_none()
        if message is None:
            raise MessageNotFoundError(resource_id=str(message_id))
        return MessageResponse.model_validate(message)

    async def create_message(
        self,
        db: AsyncSession,
        conversation_id: Union[str, uuid.UUID],
        sender_id: Union[str, uuid.UUID],
        content: Optional[str],
    ) -> MessageResponse:
        """
        Write a message; the sender is its first reader.

        Does not move the conversation's last-message pointer.

        Raises:
            InvalidIdError: Either id malformed
            ValidationError: Content empty after trimming or over 1000 chars
            ConversationNotFoundError / UserNotFoundError
        """
        cid = parse_id(conversation_id, "conversation_id")
        sid = parse_id(sender_id, "sender_id")
        payload = parse_payload(
            MessageCreate,
            {"conversation_id": cid, "sender_id": sid, "content": content or ""},
        )

        if await db.get(Conversation, cid) is None:
            raise ConversationNotFoundError(resource_id=str(cid))
        sender = await db.get(User, sid)
        if sender is None:
            raise UserNotFoundError(resource_id=str(sid))

        message = Message(
            conversation_id=cid,
            sender_id=sid,
            content=payload.content,
            read_by=[sender],
        )
        db.add(message)
        await db.flush()

        logger.info("Message %s created in conversation %s by %s", message.id, cid, sid)
        return await self._response(db, message.id)

    async def send_message(
        self,
        db: AsyncSession,
        conversation_id: Union[str, uuid.UUID],
        sender_id: Union[str, uuid.UUID],
        content: Optional[str],
    ) -> MessageResponse:
        """
        Create a message and make it the conversation's latest.

        Raises:
            Anything create_message raises (nothing has been written)
            LastMessageUpdateError: The message was written but the
                conversation pointer could not be moved
        """
        message = await self.create_message(db, conversation_id, sender_id, content)
        try:
            await conversation_service.update_last_message(db, message.conversation_id, message.id)
        except (TripTrackError, SQLAlchemyError) as e:
            logger.error(
                "Last-message update failed for conversation %s (message %s): %s",
                message.conversation_id, message.id, e,
                exc_info=True,
            )
            raise LastMessageUpdateError(str(message.conversation_id), str(message.id)) from e
        return message

    async def mark_as_read(
        self, db: AsyncSession, message_id: str, user_id: str
    ) -> MessageResponse:
        """
        Add `user_id` to the message's readers.

        Marking an already-read message again is a no-op.

        Raises:
            InvalidIdError / MessageNotFoundError / UserNotFoundError
        """
        mid = parse_id(message_id, "message_id")
        uid = parse_id(user_id, "user_id")

        if await db.get(Message, mid) is None:
            raise MessageNotFoundError(resource_id=str(mid))
        if await db.get(User, uid) is None:
            raise UserNotFoundError(resource_id=str(uid))

        if await insert_ignore(db, message_reads, {"message_id": mid, "user_id": uid}):
            logger.debug("Message %s read by %s", mid, uid)
        return await self._response(db, mid)

    async def get_messages_by_conversation(
        self, db: AsyncSession, conversation_id: str, page: int = 1, limit: int = 50
    ) -> Page[MessageResponse]:
        """
        A conversation's messages, newest first.

        Raises:
            InvalidIdError: Malformed conversation id (field "conversation_id")
        """
        cid = parse_id(conversation_id, "conversation_id")
        query = (
            select(Message)
            .where(Message.conversation_id == cid)
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        messages, total, pages = await paginate(db, query, page, limit, MESSAGE_LOAD_OPTIONS)
        return Page[MessageResponse](
            data=[MessageResponse.model_validate(m) for m in messages],
            total=total,
            pages=pages,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
message_service = MessageService()
