"""
Trip Track Backend — Password Hashing
=======================================

What:  One-way, salted, cost-tunable password hashing and verification.
Why:   Plaintext passwords are never persisted; only argon2id hashes are.
How:   argon2-cffi's PasswordHasher. Each hash embeds its own random salt
       and cost parameters, so hashes stay verifiable after the costs in
       settings are raised.
"""

import logging
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from triptrack.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(
        time_cost=settings.password_time_cost,
        memory_cost=settings.password_memory_cost,
        parallelism=settings.password_parallelism,
    )


def hash_password(plaintext: str) -> str:
    return get_password_hasher().hash(plaintext)


def verify_password(plaintext: str, hashed: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Returns False on mismatch. A hash that cannot be parsed is logged and
    treated as a mismatch so a corrupt row never authenticates.
    """
    try:
        return get_password_hasher().verify(hashed, plaintext)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as e:
        logger.warning("Stored password hash could not be verified: %s", type(e).__name__)
        return False
