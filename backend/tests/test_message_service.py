"""
Trip Track Backend — Message Service Tests
=============================================

What we test:
    ✅ New messages are read by their sender and nobody else
    ✅ create_message leaves the conversation pointer alone
    ✅ Idempotent read receipts
    ✅ Newest-first history with pagination
    ✅ Two-phase send and its reported phase-2 failure
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from triptrack.exceptions import (
    ConversationNotFoundError,
    InvalidIdError,
    LastMessageUpdateError,
    MessageNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from triptrack.services.conversation_service import conversation_service
from triptrack.services.message_service import MessageService


@pytest.fixture
def make_conversation(db_session, make_user):
    async def _make():
        alice = await make_user("alice")
        bob = await make_user("bob")
        conversation = await conversation_service.create_conversation(
            db_session, [str(alice.id), str(bob.id)]
        )
        return conversation, alice, bob

    return _make


class TestCreateMessage:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_read_by_starts_with_sender(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()

        message = await self.service.create_message(
            db_session, str(conversation.id), str(alice.id), "hi"
        )

        assert len(message.read_by) == 1
        assert message.read_by[0].id == alice.id
        assert message.sender.id == alice.id
        assert message.content == "hi"

    @pytest.mark.asyncio
    async def test_does_not_move_last_message(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()

        await self.service.create_message(db_session, str(conversation.id), str(alice.id), "hi")

        current = await conversation_service.get_conversation(db_session, str(conversation.id))
        assert current.last_message is None

    @pytest.mark.asyncio
    async def test_content_is_trimmed(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()
        message = await self.service.create_message(
            db_session, str(conversation.id), str(alice.id), "  hello  "
        )
        assert message.content == "hello"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "x" * 1001])
    async def test_invalid_content(self, db_session, make_conversation, content):
        conversation, alice, _ = await make_conversation()
        with pytest.raises(ValidationError):
            await self.service.create_message(db_session, str(conversation.id), str(alice.id), content)

    @pytest.mark.asyncio
    async def test_invalid_ids(self, db_session):
        with pytest.raises(InvalidIdError) as exc_info:
            await self.service.create_message(db_session, "bad", str(uuid.uuid4()), "hi")
        assert exc_info.value.field == "conversation_id"

        with pytest.raises(InvalidIdError) as exc_info:
            await self.service.create_message(db_session, str(uuid.uuid4()), "bad", "hi")
        assert exc_info.value.field == "sender_id"

    @pytest.mark.asyncio
    async def test_missing_conversation(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(ConversationNotFoundError):
            await self.service.create_message(db_session, str(uuid.uuid4()), str(alice.id), "hi")

    @pytest.mark.asyncio
    async def test_missing_sender(self, db_session, make_conversation):
        conversation, _, _ = await make_conversation()
        with pytest.raises(UserNotFoundError):
            await self.service.create_message(
                db_session, str(conversation.id), str(uuid.uuid4()), "hi"
            )


class TestMarkAsRead:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_mark_as_read_is_idempotent(self, db_session, make_conversation):
        conversation, alice, bob = await make_conversation()
        message = await self.service.create_message(
            db_session, str(conversation.id), str(alice.id), "hi"
        )

        once = await self.service.mark_as_read(db_session, str(message.id), str(bob.id))
        twice = await self.service.mark_as_read(db_session, str(message.id), str(bob.id))

        assert {u.id for u in once.read_by} == {alice.id, bob.id}
        assert len(twice.read_by) == 2

    @pytest.mark.asyncio
    async def test_sender_marking_own_message_is_noop(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()
        message = await self.service.create_message(
            db_session, str(conversation.id), str(alice.id), "hi"
        )

        result = await self.service.mark_as_read(db_session, str(message.id), str(alice.id))

        assert [u.id for u in result.read_by] == [alice.id]

    @pytest.mark.asyncio
    async def test_missing_message(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(MessageNotFoundError):
            await self.service.mark_as_read(db_session, str(uuid.uuid4()), str(alice.id))

    @pytest.mark.asyncio
    async def test_invalid_message_id(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(InvalidIdError):
            await self.service.mark_as_read(db_session, "bad", str(alice.id))


class TestHistory:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, db_session, make_conversation):
        conversation, alice, bob = await make_conversation()
        sent = []
        for i in range(5):
            sender = alice if i % 2 == 0 else bob
            sent.append(
                await self.service.create_message(
                    db_session, str(conversation.id), str(sender.id), f"message {i}"
                )
            )

        first = await self.service.get_messages_by_conversation(
            db_session, str(conversation.id), page=1, limit=2
        )
        last = await self.service.get_messages_by_conversation(
            db_session, str(conversation.id), page=3, limit=2
        )

        assert [m.content for m in first.data] == ["message 4", "message 3"]
        assert first.total == 5
        assert first.pages == 3
        assert [m.id for m in last.data] == [sent[0].id]

    @pytest.mark.asyncio
    async def test_default_limit_is_50(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()
        for i in range(51):
            await self.service.create_message(db_session, str(conversation.id), str(alice.id), str(i))

        result = await self.service.get_messages_by_conversation(db_session, str(conversation.id))

        assert len(result.data) == 50
        assert result.total == 51
        assert result.pages == 2

    @pytest.mark.asyncio
    async def test_invalid_conversation_id(self, db_session):
        with pytest.raises(InvalidIdError) as exc_info:
            await self.service.get_messages_by_conversation(db_session, "nope")
        assert exc_info.value.field == "conversation_id"


class TestSendMessage:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_send_updates_last_message(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()

        message = await self.service.send_message(
            db_session, str(conversation.id), str(alice.id), "hello"
        )

        current = await conversation_service.get_conversation(db_session, str(conversation.id))
        assert current.last_message.id == message.id

    @pytest.mark.asyncio
    async def test_phase_two_failure_is_reported(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()
        failing = AsyncMock(side_effect=ConversationNotFoundError())

        with patch.object(conversation_service, "update_last_message", failing):
            with pytest.raises(LastMessageUpdateError) as exc_info:
                await self.service.send_message(
                    db_session, str(conversation.id), str(alice.id), "hello"
                )

        err = exc_info.value
        assert err.conversation_id == str(conversation.id)
        assert err.message_id
        failing.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_phase_one_failure_skips_phase_two(self, db_session, make_conversation):
        conversation, alice, _ = await make_conversation()
        spy = AsyncMock()

        with patch.object(conversation_service, "update_last_message", spy):
            with pytest.raises(ValidationError):
                await self.service.send_message(db_session, str(conversation.id), str(alice.id), "  ")

        spy.assert_not_awaited()
