"""
Trip Track Backend — Entity Identifiers
=========================================

What:  Generates and parses the ids assigned to every entity.
Why:   Ids must be opaque, globally unique and time-ordered, so that
       "newest first" can fall back to id order when timestamps tie.
How:   UUID version 7: 48-bit Unix millisecond timestamp, then 74 random
       bits. Within one process the 12-bit `rand_a` field doubles as a
       counter so ids minted in the same millisecond still sort in
       creation order.
"""

import os
import threading
import time
import uuid
from typing import Optional, Union

from triptrack.exceptions import InvalidIdError

_lock = threading.Lock()
_last_ms = 0
_counter = 0


def new_id() -> uuid.UUID:
    """Return a fresh, monotonically increasing UUIDv7."""
    global _last_ms, _counter

    with _lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms > _last_ms:
            _last_ms = now_ms
            _counter = int.from_bytes(os.urandom(2), "big") & 0x7FF
        else:
            _counter += 1
            if _counter > 0xFFF:
                # Counter exhausted: borrow the next millisecond
                _last_ms += 1
                _counter = 0
        ms, seq = _last_ms, _counter

    rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
    value = (ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76          # version
    value |= seq << 64          # rand_a (monotonic sequence)
    value |= 0b10 << 62         # RFC 4122 variant
    value |= rand_b
    return uuid.UUID(int=value)


def parse_id(value: Union[str, uuid.UUID, None], field: str = "id") -> uuid.UUID:
    """
    Convert an incoming identifier into a UUID.

    Raises:
        InvalidIdError: The value is missing or not a well-formed id.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdError(field=field, value=None if value is None else str(value))
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise InvalidIdError(field=field, value=value)


def id_timestamp_ms(value: uuid.UUID) -> Optional[int]:
    """Creation time embedded in a version 7 id, or None for other versions."""
    if value.version != 7:
        return None
    return value.int >> 80
