"""
Trip Track Backend — User Schemas
===================================

Security: no response model in this module has a password field, so the
hash can never be serialized, whichever service path produced the user.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from triptrack.schemas.common import UserSummary

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class UserCreate(BaseModel):
    """Registration payload."""
    name: str = Field(min_length=2, max_length=50)
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=8, max_length=256)
    bio: str = Field(default="", max_length=500)
    profile_picture: str = Field(default="", max_length=500)

    model_config = {"str_strip_whitespace": True}

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v.lower()

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(BaseModel):
    """
    Partial profile edit.

    Only fields present in the payload are applied. An explicitly empty
    bio is a real value and clears the bio.
    """
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture: Optional[str] = Field(default=None, max_length=500)

    model_config = {"str_strip_whitespace": True}


class UserResponse(BaseModel):
    """Externally visible form of a user, connections populated to summaries."""
    id: uuid.UUID
    name: str
    username: str
    email: str
    bio: str
    profile_picture: str
    is_admin: bool
    is_protected: bool
    followers: List[UserSummary] = Field(default_factory=list)
    following: List[UserSummary] = Field(default_factory=list)
    bookmark_ids: List[uuid.UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

