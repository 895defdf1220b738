"""Trip Track Backend — Message Schemas"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from triptrack.schemas.common import UserSummary

MAX_MESSAGE_LENGTH = 1000


class MessageCreate(BaseModel):
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

    model_config = {"str_strip_whitespace": True}


class MessageResponse(BaseModel):
    """A message with sender and readers populated to summaries."""
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender: UserSummary
    content: str
    read_by: List[UserSummary]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
