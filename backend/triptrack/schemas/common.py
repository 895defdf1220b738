"""
Trip Track Backend — Shared Pydantic Schemas
==============================================

What:  Models reused by every resource: points, pagination envelopes,
       user summaries, error and health bodies.
Why:   One definition of the "summary projection" and the `{data, total,
       pages}` envelope keeps every listing consistent.
"""

import uuid
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from triptrack.exceptions import ValidationError

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


class Point(BaseModel):
    """A latitude/longitude pair in decimal degrees."""
    lat: float = Field(ge=-90, le=90, description="Latitude, -90..90")
    lng: float = Field(ge=-180, le=180, description="Longitude, -180..180")


class UserSummary(BaseModel):
    """
    Reduced view of a user used wherever users are populated into other
    resources (followers, likers, comment authors, participants, senders).

    Never carries email or password.
    """
    id: uuid.UUID
    name: str
    username: str
    profile_picture: str = ""

    model_config = {"from_attributes": True}


class Page(BaseModel, Generic[T]):
    """
    Offset-paginated listing.

    pages = ceil(total / limit); a page past the end has empty `data`.
    """
    data: List[T] = Field(description="Items on the requested page")
    total: int = Field(description="Total number of matching items")
    pages: int = Field(description="Number of pages at the requested limit")


class ErrorResponse(BaseModel):
    """Standardized error response format for all API errors."""
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


def parse_payload(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """
    Validate raw input against a schema.

    Raises:
        ValidationError: with context["errors"] mapping each failing field
            path (e.g. "start_point.lat") to its message.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            path = ".".join(str(part) for part in err["loc"]) or "__root__"
            errors.setdefault(path, err["msg"])
        raise ValidationError(message="Validation failed", context={"errors": errors})
