"""
Trip Track Backend — Auth Service
===================================

What:  Credential login and session validation.
How:   The HTTP layer keeps the user id in its session; these methods turn
       an email/password pair into a user and check that a stored user id
       still names an account.

Security:
    An unknown email and a wrong password fail with the same
    InvalidCredentialsError, so login does not reveal which accounts exist.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from triptrack import security
from triptrack.exceptions import (
    InvalidCredentialsError,
    InvalidIdError,
    SessionInvalidError,
    UserNotFoundError,
)
from triptrack.schemas.user import UserResponse
from triptrack.services.user_service import user_service

logger = logging.getLogger(__name__)


class AuthService:

    async def login(self, db: AsyncSession, email: str, password: str) -> UserResponse:
        """
        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        user = await user_service.find_by_email(db, email or "")
        if user is None:
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        valid = await asyncio.to_thread(security.verify_password, password or "", user.password_hash)
        if not valid:
            logger.info("Login failed: wrong password for user %s", user.id)
            raise InvalidCredentialsError()

        logger.info("User %s logged in", user.id)
        return await user_service.get_user(db, str(user.id))

    async def validate_session(self, db: AsyncSession, user_id: str) -> UserResponse:
        """Raises SessionInvalidError if the id is malformed or the user is gone."""
        try:
            return await user_service.get_user(db, user_id)
        except (InvalidIdError, UserNotFoundError):
            logger.info("Rejected session for user id %r", user_id)
            raise SessionInvalidError()


auth_service = AuthService()
