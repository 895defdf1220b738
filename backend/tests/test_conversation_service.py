"""
Trip Track Backend — Conversation Service Tests
==================================================

What we test:
    ✅ Idempotent creation regardless of participant order
    ✅ Participant count and id validation
    ✅ Listing: membership filter, most-recently-updated first, pagination
    ✅ Last-message pointer maintenance
"""

import uuid

import pytest

from triptrack.exceptions import (
    ConversationNotFoundError,
    InvalidIdError,
    MessageNotFoundError,
    TooFewParticipantsError,
    UserNotFoundError,
)
from triptrack.models import Conversation, User, make_participant_key
from triptrack.services.conversation_service import ConversationService
from triptrack.services.message_service import message_service


class TestCreateConversation:

    def setup_method(self):
        self.service = ConversationService()

    @pytest.mark.asyncio
    async def test_create_is_idempotent_in_any_order(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        first = await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])
        second = await self.service.create_conversation(db_session, [str(bob.id), str(alice.id)])

        assert first.id == second.id
        assert {p.id for p in first.participants} == {alice.id, bob.id}
        assert first.last_message is None

    @pytest.mark.asyncio
    async def test_different_sets_get_different_conversations(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")

        pair = await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])
        group = await self.service.create_conversation(
            db_session, [str(alice.id), str(bob.id), str(carol.id)]
        )

        assert pair.id != group.id
        assert len(group.participants) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1])
    async def test_too_few_participants(self, db_session, make_user, count):
        alice = await make_user("alice")
        with pytest.raises(TooFewParticipantsError):
            await self.service.create_conversation(db_session, [str(alice.id)] * count)

    @pytest.mark.asyncio
    async def test_same_user_twice_is_too_few(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(TooFewParticipantsError):
            await self.service.create_conversation(db_session, [str(alice.id), str(alice.id)])

    @pytest.mark.asyncio
    async def test_malformed_participant_id(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(InvalidIdError) as exc_info:
            await self.service.create_conversation(db_session, [str(alice.id), "garbage"])
        assert exc_info.value.field == "participant_id"

    @pytest.mark.asyncio
    async def test_unknown_participant(self, db_session, make_user):
        alice = await make_user("alice")
        with pytest.raises(UserNotFoundError):
            await self.service.create_conversation(db_session, [str(alice.id), str(uuid.uuid4())])


class TestListConversations:

    def setup_method(self):
        self.service = ConversationService()

    @pytest.mark.asyncio
    async def test_default_pagination_over_25_conversations(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        members = [await db_session.get(User, alice.id), await db_session.get(User, bob.id)]
        key = make_participant_key([alice.id, bob.id])
        for _ in range(25):
            db_session.add(Conversation(participant_key=key, participants=list(members)))
        await db_session.flush()

        result = await self.service.get_conversations_by_user_id(db_session, str(alice.id))

        assert len(result.data) == 20
        assert result.total == 25
        assert result.pages == 2

        second = await self.service.get_conversations_by_user_id(db_session, str(alice.id), page=2)
        assert len(second.data) == 5

    @pytest.mark.asyncio
    async def test_only_members_see_conversation(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])

        result = await self.service.get_conversations_by_user_id(db_session, str(carol.id))

        assert result.data == []
        assert result.total == 0
        assert result.pages == 0

    @pytest.mark.asyncio
    async def test_recently_updated_first_with_last_message(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        with_bob = await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])
        with_carol = await self.service.create_conversation(db_session, [str(alice.id), str(carol.id)])

        sent = await message_service.send_message(db_session, str(with_bob.id), str(bob.id), "hey")

        result = await self.service.get_conversations_by_user_id(db_session, str(alice.id))

        assert [c.id for c in result.data] == [with_bob.id, with_carol.id]
        latest = result.data[0].last_message
        assert latest.id == sent.id
        assert latest.sender.id == bob.id
        assert [u.id for u in latest.read_by] == [bob.id]

    @pytest.mark.asyncio
    async def test_invalid_user_id(self, db_session):
        with pytest.raises(InvalidIdError) as exc_info:
            await self.service.get_conversations_by_user_id(db_session, "nope")
        assert exc_info.value.field == "user_id"


class TestUpdateLastMessage:

    def setup_method(self):
        self.service = ConversationService()

    @pytest.mark.asyncio
    async def test_pointer_moves_to_given_message(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        conversation = await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])
        message = await message_service.create_message(db_session, conversation.id, alice.id, "hi")

        updated = await self.service.update_last_message(db_session, str(conversation.id), str(message.id))

        assert updated.last_message.id == message.id
        assert updated.last_message.content == "hi"

    @pytest.mark.asyncio
    async def test_missing_conversation(self, db_session):
        with pytest.raises(ConversationNotFoundError):
            await self.service.update_last_message(db_session, str(uuid.uuid4()), str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_missing_message(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        conversation = await self.service.create_conversation(db_session, [str(alice.id), str(bob.id)])
        with pytest.raises(MessageNotFoundError):
            await self.service.update_last_message(db_session, str(conversation.id), str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_invalid_ids(self, db_session):
        with pytest.raises(InvalidIdError):
            await self.service.update_last_message(db_session, "bad", str(uuid.uuid4()))
        with pytest.raises(InvalidIdError):
            await self.service.update_last_message(db_session, str(uuid.uuid4()), "bad")
