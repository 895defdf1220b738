"""ORM models. Importing this package registers every table with Base.metadata."""

from triptrack.models.conversation import (
    Conversation,
    conversation_participants,
    make_participant_key,
)
from triptrack.models.message import Message, message_reads
from triptrack.models.route import (
    Route,
    RouteComment,
    RouteTag,
    route_likes,
)
from triptrack.models.user import User, user_bookmarks, user_follows

__all__ = [
    "Conversation",
    "Message",
    "Route",
    "RouteComment",
    "RouteTag",
    "User",
    "conversation_participants",
    "make_participant_key",
    "message_reads",
    "route_likes",
    "user_bookmarks",
    "user_follows",
]
