"""
Trip Track Backend — Route Schemas
====================================

What:  Input validation for new routes and the two output shapes:
       RouteResponse (single route, relations populated) and RouteSummary
       (feed card: counts instead of the full like/comment lists).
"""

import uuid
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

from triptrack.schemas.common import Page, Point, UserSummary

TravelMode = Literal["DRIVING", "BICYCLING", "TRANSIT", "WALKING"]
Visibility = Literal["public", "private", "followers"]

MAX_TAG_LENGTH = 20


class RouteCreate(BaseModel):
    """
    Payload for a new route.

    Coordinate bounds, enum membership and string lengths are all checked
    here; a failure becomes a ValidationError with field-level messages.
    """
    title: str = Field(min_length=1, max_length=100)
    creator_id: uuid.UUID
    start_point: Point
    end_point: Point
    waypoints: List[Point] = Field(default_factory=list)
    travel_mode: TravelMode
    description: str = Field(default="", max_length=2000)
    total_distance: float = Field(ge=0)
    total_time: float = Field(ge=0)
    visibility: Visibility = "public"
    tags: List[str] = Field(default_factory=list)

    model_config = {"str_strip_whitespace": True}

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        """Trim, lowercase and deduplicate tags, keeping first-seen order."""
        seen: List[str] = []
        for raw in v:
            tag = raw.strip().lower()
            if not tag:
                continue
            if len(tag) > MAX_TAG_LENGTH:
                raise ValueError(f"Tag cannot exceed {MAX_TAG_LENGTH} characters")
            if tag not in seen:
                seen.append(tag)
        return seen


class CommentResponse(BaseModel):
    id: uuid.UUID
    content: str
    user: UserSummary
    created_at: datetime

    model_config = {"from_attributes": True}


class RouteResponse(BaseModel):
    """A single route with creator, likers and comment authors populated."""
    id: uuid.UUID
    title: str
    creator: UserSummary
    start_point: Point
    end_point: Point
    waypoints: List[Point]
    travel_mode: TravelMode
    description: str
    total_distance: float
    total_time: float
    likes: List[UserSummary]
    comments: List[CommentResponse]
    visibility: Visibility
    tags: List[str]
    like_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RouteSummary(BaseModel):
    """Feed card for a route."""
    id: uuid.UUID
    title: str
    creator: UserSummary
    start_point: Point
    end_point: Point
    travel_mode: TravelMode
    total_distance: float
    total_time: float
    like_count: int
    comment_count: int
    visibility: Visibility
    tags: List[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class RouteFeedPage(Page[RouteSummary]):
    """The generic public feed also echoes the requested page and limit."""
    page: int
    limit: int
