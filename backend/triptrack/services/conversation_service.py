"""
Trip Track Backend — Conversation Service
===========================================

What:  Conversation creation (idempotent per participant set), listing,
       and the last-message pointer.

Idempotent create:
    A conversation's participant_key is its sorted, comma-joined participant
    ids, so "same members, any order" is a single equality lookup. Asking
    for [a, b] and later [b, a] returns the same conversation.
"""

import logging
import uuid
from typing import Iterable, List, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from triptrack.exceptions import (
    ConversationNotFoundError,
    MessageNotFoundError,
    TooFewParticipantsError,
    UserNotFoundError,
)
from triptrack.ids import parse_id
from triptrack.models import Conversation, Message, User, conversation_participants, make_participant_key
from triptrack.models.mixins import utcnow
from triptrack.schemas.common import Page
from triptrack.schemas.conversation import ConversationResponse
from triptrack.services.pagination import paginate

logger = logging.getLogger(__name__)

CONVERSATION_LOAD_OPTIONS = (
    selectinload(Conversation.participants),
    selectinload(Conversation.last_message).options(
        selectinload(Message.sender),
        selectinload(Message.read_by),
    ),
)


class ConversationService:
    """Business logic layer for conversations."""

    async def _response(self, db: AsyncSession, conversation_id: uuid.UUID) -> ConversationResponse:
        result = await db.execute(
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .options(*CONVERSATION_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        conversation = result.scalar_one_or_none()
        if conversation is None:
            raise ConversationNotFoundError(resource_id=str(conversation_id))
        return ConversationResponse.model_validate(conversation)

    async def create_conversation(
        self, db: AsyncSession, participant_ids: Iterable[Union[str, uuid.UUID]]
    ) -> ConversationResponse:
        """
        Return the conversation for exactly this participant set, creating
        it if none exists.

        Duplicate ids in the input count once.

        Raises:
            TooFewParticipantsError: Fewer than 2 ids given
            InvalidIdError: An id is malformed (field "participant_id")
            UserNotFoundError: A participant does not exist
        """
        raw_ids = list(participant_ids or [])
        if len(raw_ids) < 2:
            raise TooFewParticipantsError(len(raw_ids))

        ids: List[uuid.UUID] = []
        for raw in raw_ids:
            pid = parse_id(raw, "participant_id")
            if pid not in ids:
                ids.append(pid)
        if len(ids) < 2:
            raise TooFewParticipantsError(len(ids))

        key = make_participant_key(ids)
        existing = await db.scalar(
            select(Conversation.id)
            .where(Conversation.participant_key == key)
            .order_by(Conversation.created_at, Conversation.id)
            .limit(1)
        )
        if existing is not None:
            logger.debug("Reusing conversation %s for %s", existing, key)
            return await self._response(db, existing)

        result = await db.execute(select(User).where(User.id.in_(ids)))
        users = {user.id: user for user in result.scalars().all()}
        for pid in ids:
            if pid not in users:
                raise UserNotFoundError(resource_id=str(pid))

        conversation = Conversation(
            participant_key=key,
            participants=[users[pid] for pid in ids],
        )
        db.add(conversation)
        await db.flush()

        logger.info("Conversation created: %s (%d participants)", conversation.id, len(ids))
        return await self._response(db, conversation.id)

    async def get_conversation(self, db: AsyncSession, conversation_id: str) -> ConversationResponse:
        return await self._response(db, parse_id(conversation_id, "conversation_id"))

    async def get_conversations_by_user_id(
        self, db: AsyncSession, user_id: str, page: int = 1, limit: int = 20
    ) -> Page[ConversationResponse]:
        """
        Conversations the user takes part in, most recently updated first.

        Raises:
            InvalidIdError: Malformed user id (field "user_id")
        """
        uid = parse_id(user_id, "user_id")
        query = (
            select(Conversation)
            .join(
                conversation_participants,
                conversation_participants.c.conversation_id == Conversation.id,
            )
            .where(conversation_participants.c.user_id == uid)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        conversations, total, pages = await paginate(
            db, query, page, limit, CONVERSATION_LOAD_OPTIONS
        )
        return Page[ConversationResponse](
            data=[ConversationResponse.model_validate(c) for c in conversations],
            total=total,
            pages=pages,
        )

    async def update_last_message(
        self, db: AsyncSession, conversation_id: Union[str, uuid.UUID], message_id: Union[str, uuid.UUID]
    ) -> ConversationResponse:
        """
        Point the conversation at its newest message and bump updated_at.

        Raises:
            InvalidIdError: Either id malformed
            ConversationNotFoundError: No such conversation
            MessageNotFoundError: The message does not exist or belongs to
                another conversation
        """
        cid = parse_id(conversation_id, "conversation_id")
        mid = parse_id(message_id, "message_id")

        conversation = await db.get(Conversation, cid)
        if conversation is None:
            raise ConversationNotFoundError(resource_id=str(cid))
        message = await db.get(Message, mid)
        if message is None or message.conversation_id != cid:
            raise MessageNotFoundError(resource_id=str(mid))

        conversation.last_message_id = mid
        conversation.updated_at = utcnow()
        await db.flush()

        logger.info("Conversation %s last message -> %s", cid, mid)
        return await self._response(db, cid)


# ── Singleton Instance ────────────────────────────────────────────────────
conversation_service = ConversationService()
