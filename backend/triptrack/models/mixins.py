"""Columns shared by every entity table."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from triptrack.ids import new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdMixin:
    # Time-ordered UUIDv7, assigned in Python so it is known before flush
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_id)


class TimestampMixin:
    # UTC; the frontend converts to local time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
