"""
Trip Track Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table plus the follow and bookmark sets.
Why:   Users own routes, follow each other, bookmark routes and take part
       in conversations.

Table Design Rationale:
    - username / email: unique indexes; the database is the final arbiter
      of uniqueness even if two registrations race past the service check.
    - password_hash: argon2id hash. There is no plaintext column and the
      response schemas have no password field at all.
    - user_follows: ONE row per edge. The row (follower_id=u, followed_id=v)
      is simultaneously "v in u.following" and "u in v.followers", so the
      two sides can never disagree.
    - user_bookmarks: (user_id, route_id) composite key gives set semantics.
    - Conversations are reached through conversation_participants; no
      separate per-user list is stored.
"""

import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from triptrack.database import Base
from triptrack.models.mixins import IdMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from triptrack.models.route import Route


user_follows = Table(
    "user_follows",
    Base.metadata,
    Column("follower_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    CheckConstraint("follower_id <> followed_id", name="ck_user_follows_not_self"),
)

user_bookmarks = Table(
    "user_bookmarks",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("route_id", Uuid, ForeignKey("routes.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class User(IdMixin, TimestampMixin, Base):
    """
    A registered account.

    Lifecycle:
        Created on registration (password hashed before persist), mutated by
        follow/unfollow/bookmark operations and profile edits. No exposed
        operation deletes a user.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    profile_picture: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Written through user_follows / user_bookmarks directly, never via these
    followers: Mapped[List["User"]] = relationship(
        "User",
        secondary=user_follows,
        primaryjoin=lambda: User.id == user_follows.c.followed_id,
        secondaryjoin=lambda: User.id == user_follows.c.follower_id,
        viewonly=True,
    )
    following: Mapped[List["User"]] = relationship(
        "User",
        secondary=user_follows,
        primaryjoin=lambda: User.id == user_follows.c.follower_id,
        secondaryjoin=lambda: User.id == user_follows.c.followed_id,
        viewonly=True,
    )
    bookmarks: Mapped[List["Route"]] = relationship(
        "Route",
        secondary=user_bookmarks,
        viewonly=True,
    )

    @property
    def bookmark_ids(self) -> List[uuid.UUID]:
        return [route.id for route in self.bookmarks]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
