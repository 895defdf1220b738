"""Trip Track Backend — Conversation Schemas"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from triptrack.schemas.common import UserSummary
from triptrack.schemas.message import MessageResponse


class ConversationResponse(BaseModel):
    """
    A conversation with participants populated to summaries and the latest
    message (with its sender and readers) inlined. `last_message` is None
    until the first message is sent.
    """
    id: uuid.UUID
    participants: List[UserSummary]
    last_message: Optional[MessageResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
