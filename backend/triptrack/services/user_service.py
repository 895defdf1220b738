"""
Trip Track Backend — User Service
===================================

What:  Accounts, credentials, the follow graph and bookmarks.
Who:   Called by route handlers and by AuthService.

Follow graph:
    One `user_follows` row is both sides of an edge, so "v in u.following"
    and "u in v.followers" are the same fact and cannot diverge. Following
    is a single INSERT ... ON CONFLICT DO NOTHING and unfollowing a single
    DELETE; the row count tells us whether the edge existed. Two concurrent
    follows of the same pair therefore produce exactly one edge and one
    AlreadyFollowingError, instead of racing past a read-then-write check.

Bookmarks use the same pattern on `user_bookmarks`.
"""

import asyncio
import logging
import uuid
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from triptrack import security
from triptrack.database import delete_row, insert_ignore
from triptrack.exceptions import (
    AlreadyBookmarkedError,
    AlreadyFollowingError,
    ConflictError,
    EmailExistsError,
    InvalidIdError,
    InvalidPasswordError,
    NotBookmarkedError,
    NotFollowingError,
    RouteNotFoundError,
    SelfFollowError,
    UserNotFoundError,
    UsernameExistsError,
    UsernameRequiredError,
    ValidationError,
)
from triptrack.ids import parse_id
from triptrack.models import Route, User, user_bookmarks, user_follows
from triptrack.schemas.common import UserSummary, parse_payload
from triptrack.schemas.route import RouteSummary
from triptrack.schemas.user import ProfileUpdate, UserCreate, UserResponse
from triptrack.services.route_service import SUMMARY_LOAD_OPTIONS

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# Everything UserResponse serializes
USER_LOAD_OPTIONS = (
    selectinload(User.followers),
    selectinload(User.following),
    selectinload(User.bookmarks),
)


class UserService:
    """
    Business logic layer for users.

    Every method takes the request's AsyncSession first and only flushes;
    the session dependency commits.
    """

    # ── Loading helpers ───────────────────────────────────────────────────

    async def load_user(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        """Fetch a user with connections and bookmarks loaded, refreshing cached state."""
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .options(*USER_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _require_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(resource_id=str(user_id))
        return user

    async def _require_users(self, db: AsyncSession, *user_ids: uuid.UUID) -> None:
        result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
        found = set(result.scalars().all())
        for user_id in user_ids:
            if user_id not in found:
                raise UserNotFoundError(resource_id=str(user_id))

    async def _response(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        user = await self.load_user(db, user_id)
        if user is None:
            raise UserNotFoundError(resource_id=str(user_id))
        return UserResponse.model_validate(user)

    # ── Accounts ──────────────────────────────────────────────────────────

    async def create_user(
        self, db: AsyncSession, data: Union[UserCreate, Mapping[str, Any]]
    ) -> UserResponse:
        """
        Register a new account.

        Raises:
            ValidationError: Payload fails schema validation
            EmailExistsError: Email already registered
            UsernameExistsError: Username already registered
        """
        payload = parse_payload(UserCreate, data)

        if await db.scalar(select(User.id).where(User.email == payload.email)):
            raise EmailExistsError()
        if await db.scalar(select(User.id).where(User.username == payload.username)):
            raise UsernameExistsError()

        # argon2 is deliberately slow; keep it off the event loop
        password_hash = await asyncio.to_thread(security.hash_password, payload.password)

        user = User(
            name=payload.name,
            username=payload.username,
            email=payload.email,
            password_hash=password_hash,
            bio=payload.bio,
            profile_picture=payload.profile_picture,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent registration won the unique index
            logger.warning("Registration lost unique-index race for %s", payload.username)
            raise ConflictError("Email or username already exists")

        logger.info("User created: %s (%s)", user.id, user.username)
        return await self._response(db, user.id)

    async def get_user(self, db: AsyncSession, user_id: str) -> UserResponse:
        """Raises InvalidIdError / UserNotFoundError."""
        return await self._response(db, parse_id(user_id, "user_id"))

    async def get_user_by_username(
        self, db: AsyncSession, username: Optional[str]
    ) -> Optional[UserResponse]:
        """
        Look a user up by username (case-insensitive, usernames are stored lowercase).

        Returns:
            The user with followers/following populated, or None if no match.

        Raises:
            UsernameRequiredError: Empty or whitespace-only input
        """
        if username is None or not username.strip():
            raise UsernameRequiredError()

        user_id = await db.scalar(
            select(User.id).where(User.username == username.strip().lower())
        )
        if user_id is None:
            return None
        return await self._response(db, user_id)

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        return await db.scalar(select(User).where(User.email == email.strip().lower()))

    async def verify_password(self, db: AsyncSession, user_id: str, plaintext: str) -> bool:
        """
        Check a plaintext password against the stored hash.

        Raises:
            InvalidIdError: Malformed user id
            UserNotFoundError: No such user
        """
        user = await self._require_user(db, parse_id(user_id, "user_id"))
        return await asyncio.to_thread(security.verify_password, plaintext or "", user.password_hash)

    async def update_password(
        self, db: AsyncSession, user_id: str, old_password: str, new_password: str
    ) -> UserResponse:
        """
        Replace the password after checking the current one.

        Raises:
            InvalidIdError / UserNotFoundError
            InvalidPasswordError: old_password does not match
            ValidationError: new_password shorter than 8 characters
        """
        uid = parse_id(user_id, "user_id")
        user = await self._require_user(db, uid)

        matches = await asyncio.to_thread(
            security.verify_password, old_password or "", user.password_hash
        )
        if not matches:
            raise InvalidPasswordError()
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                field="new_password",
            )

        user.password_hash = await asyncio.to_thread(security.hash_password, new_password)
        await db.flush()
        logger.info("Password updated for user %s", uid)
        return await self._response(db, uid)

    async def update_profile(
        self, db: AsyncSession, user_id: str, data: Union[ProfileUpdate, Mapping[str, Any]]
    ) -> UserResponse:
        """
        Apply a partial profile edit.

        Omitted fields (or fields sent as null) are left unchanged; an
        explicitly empty bio or picture clears it.
        """
        uid = parse_id(user_id, "user_id")
        payload = parse_payload(ProfileUpdate, data)
        user = await self._require_user(db, uid)

        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }
        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()

        logger.info("Profile updated for user %s: %s", uid, sorted(changes))
        return await self._response(db, uid)

    # ── Follow graph ──────────────────────────────────────────────────────

    async def follow_user(self, db: AsyncSession, user_id: str, target_id: str) -> UserResponse:
        """
        Make `user_id` follow `target_id`.

        Returns:
            The follower, connections populated.

        Raises:
            InvalidIdError: Either id malformed
            SelfFollowError: user_id == target_id
            UserNotFoundError: Either party missing
            AlreadyFollowingError: Edge already exists
        """
        uid = parse_id(user_id, "user_id")
        tid = parse_id(target_id, "target_id")
        if uid == tid:
            raise SelfFollowError("follow")
        await self._require_users(db, uid, tid)

        added = await insert_ignore(db, user_follows, {"follower_id": uid, "followed_id": tid})
        if not added:
            raise AlreadyFollowingError()

        logger.info("User %s followed %s", uid, tid)
        return await self._response(db, uid)

    async def unfollow_user(self, db: AsyncSession, user_id: str, target_id: str) -> UserResponse:
        """Mirror of follow_user; raises NotFollowingError if there is no edge."""
        uid = parse_id(user_id, "user_id")
        tid = parse_id(target_id, "target_id")
        if uid == tid:
            raise SelfFollowError("unfollow")
        await self._require_users(db, uid, tid)

        removed = await delete_row(db, user_follows, {"follower_id": uid, "followed_id": tid})
        if not removed:
            raise NotFollowingError()

        logger.info("User %s unfollowed %s", uid, tid)
        return await self._response(db, uid)

    async def get_followers(self, db: AsyncSession, user_id: str) -> List[UserSummary]:
        user = await self._load_connections(db, user_id)
        return [UserSummary.model_validate(u) for u in user.followers]

    async def get_following(self, db: AsyncSession, user_id: str) -> List[UserSummary]:
        user = await self._load_connections(db, user_id)
        return [UserSummary.model_validate(u) for u in user.following]

    async def _load_connections(self, db: AsyncSession, user_id: str) -> User:
        try:
            uid = parse_id(user_id, "user_id")
        except InvalidIdError:
            raise UserNotFoundError(resource_id=str(user_id)) from None
        user = await self.load_user(db, uid)
        if user is None:
            raise UserNotFoundError(resource_id=str(uid))
        return user

    # ── Bookmarks ─────────────────────────────────────────────────────────

    async def bookmark_route(self, db: AsyncSession, user_id: str, route_id: str) -> UserResponse:
        """
        Raises:
            InvalidIdError / UserNotFoundError / RouteNotFoundError
            AlreadyBookmarkedError: Route already in the user's bookmarks
        """
        uid, rid = await self._bookmark_ids(db, user_id, route_id)
        added = await insert_ignore(db, user_bookmarks, {"user_id": uid, "route_id": rid})
        if not added:
            raise AlreadyBookmarkedError()
        logger.info("User %s bookmarked route %s", uid, rid)
        return await self._response(db, uid)

    async def remove_bookmark(self, db: AsyncSession, user_id: str, route_id: str) -> UserResponse:
        """Raises NotBookmarkedError if the route is not bookmarked."""
        uid, rid = await self._bookmark_ids(db, user_id, route_id)
        removed = await delete_row(db, user_bookmarks, {"user_id": uid, "route_id": rid})
        if not removed:
            raise NotBookmarkedError()
        logger.info("User %s removed bookmark %s", uid, rid)
        return await self._response(db, uid)

    async def get_bookmarks(self, db: AsyncSession, user_id: str) -> List[RouteSummary]:
        """Bookmarked routes as feed cards, newest route first."""
        uid = parse_id(user_id, "user_id")
        await self._require_user(db, uid)

        result = await db.execute(
            select(Route)
            .join(user_bookmarks, user_bookmarks.c.route_id == Route.id)
            .where(user_bookmarks.c.user_id == uid)
            .order_by(Route.created_at.desc(), Route.id.desc())
            .options(*SUMMARY_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return [RouteSummary.model_validate(r) for r in result.scalars().all()]

    async def _bookmark_ids(self, db: AsyncSession, user_id: str, route_id: str) -> Sequence[uuid.UUID]:
        uid = parse_id(user_id, "user_id")
        rid = parse_id(route_id, "route_id")
        await self._require_user(db, uid)
        if await db.get(Route, rid) is None:
            raise RouteNotFoundError(resource_id=str(rid))
        return uid, rid


# ── Singleton Instance ────────────────────────────────────────────────────
# Stateless; one instance serves every request
user_service = UserService()
