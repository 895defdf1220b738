"""
Trip Track Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for every failure a service can report.
Why:   Services raise descriptive failures; the HTTP shell is the single place
       that translates them into status codes and JSON error bodies.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch the base
       classes and return structured JSON error responses.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    TripTrackError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    │   ├── InvalidIdError
    │   ├── EmptyCommentError
    │   ├── UsernameRequiredError
    │   ├── SelfFollowError
    │   └── TooFewParticipantsError
    ├── CredentialError            → 401 Unauthorized
    │   ├── InvalidPasswordError
    │   ├── InvalidCredentialsError
    │   └── SessionInvalidError
    ├── AuthorizationError         → 403 Forbidden
    │   └── NotAuthorizedError
    ├── NotFoundError              → 404 Not Found
    │   ├── UserNotFoundError, RouteNotFoundError, CommentNotFoundError
    │   └── ConversationNotFoundError, MessageNotFoundError
    ├── ConflictError              → 409 Conflict
    │   ├── EmailExistsError, UsernameExistsError
    │   ├── AlreadyFollowingError, NotFollowingError
    │   ├── AlreadyLikedError, NotLikedError
    │   └── AlreadyBookmarkedError, NotBookmarkedError
    └── DatabaseError              → 500 Internal Server Error
        └── LastMessageUpdateError
"""

from typing import Any, Dict, Optional


class TripTrackError(Exception):
    """
    Base exception for all Trip Track application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (returned as `details` only for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# 400: Validation
# ══════════════════════════════════════════════════════════════════════════


class ValidationError(TripTrackError):
    """
    Raised when client input fails validation.

    When:    Malformed identifiers, out-of-range coordinates, disallowed enum
             values, missing required fields, over-length strings.
    HTTP:    400 Bad Request

    Schema failures carry field-level messages under context["errors"]:
        {"errors": {"start_point.lat": "Input should be less than or equal to 90"}}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdError(ValidationError):
    """An identifier string is not a well-formed id."""

    def __init__(self, field: str = "id", value: Optional[str] = None):
        super().__init__(
            message=f"Invalid {field} format",
            field=field,
            context={"value": value} if value is not None else None,
        )


class EmptyCommentError(ValidationError):
    def __init__(self):
        super().__init__(message="Comment content cannot be empty", field="content")


class UsernameRequiredError(ValidationError):
    def __init__(self):
        super().__init__(message="Username is required", field="username")


class SelfFollowError(ValidationError):
    def __init__(self, action: str = "follow"):
        super().__init__(message=f"Users cannot {action} themselves", field="target_id")


class TooFewParticipantsError(ValidationError):
    def __init__(self, count: int = 0):
        super().__init__(
            message="Conversation must have at least 2 participants",
            field="participant_ids",
            context={"count": count},
        )


# ══════════════════════════════════════════════════════════════════════════
# 401: Credentials
# ══════════════════════════════════════════════════════════════════════════


class CredentialError(TripTrackError):
    """
    Raised when the caller's credentials or session cannot be accepted.

    HTTP:    401 Unauthorized
    Security: Messages never reveal whether the account exists.
    """


class InvalidPasswordError(CredentialError):
    def __init__(self):
        super().__init__(message="Invalid password")


class InvalidCredentialsError(CredentialError):
    def __init__(self):
        super().__init__(message="Invalid credentials")


class SessionInvalidError(CredentialError):
    def __init__(self):
        super().__init__(message="Session is invalid or has expired")


# ══════════════════════════════════════════════════════════════════════════
# 403: Authorization
# ══════════════════════════════════════════════════════════════════════════


class AuthorizationError(TripTrackError):
    """
    Raised when an authenticated user acts on a resource they do not own.

    HTTP:    403 Forbidden
    """


class NotAuthorizedError(AuthorizationError):
    def __init__(self, action: str = "perform this action"):
        super().__init__(message=f"Not authorized to {action}")


# ══════════════════════════════════════════════════════════════════════════
# 404: Not Found
# ══════════════════════════════════════════════════════════════════════════


class NotFoundError(TripTrackError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows (not an exception); services
    convert that None into the matching subclass below.
    """

    resource = "resource"

    def __init__(
        self,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        resource = resource or self.resource
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UserNotFoundError(NotFoundError):
    resource = "user"


class RouteNotFoundError(NotFoundError):
    resource = "route"


class CommentNotFoundError(NotFoundError):
    resource = "comment"


class ConversationNotFoundError(NotFoundError):
    resource = "conversation"


class MessageNotFoundError(NotFoundError):
    resource = "message"


# ══════════════════════════════════════════════════════════════════════════
# 409: Conflict
# ══════════════════════════════════════════════════════════════════════════


class ConflictError(TripTrackError):
    """
    Raised when the request conflicts with the current state of a resource.

    When:    Duplicate email/username, following twice, liking twice,
             bookmarking twice, or removing an edge that does not exist.
    HTTP:    409 Conflict
    """

    default_message = "Request conflicts with the current state"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message or self.default_message, context=context)


class EmailExistsError(ConflictError):
    default_message = "Email already exists"


class UsernameExistsError(ConflictError):
    default_message = "Username already exists"


class AlreadyFollowingError(ConflictError):
    default_message = "Already following this user"


class NotFollowingError(ConflictError):
    default_message = "Not following this user"


class AlreadyLikedError(ConflictError):
    default_message = "Route already liked"


class NotLikedError(ConflictError):
    default_message = "Route not liked"


class AlreadyBookmarkedError(ConflictError):
    default_message = "Route already bookmarked"


class NotBookmarkedError(ConflictError):
    default_message = "Route not bookmarked"


# ══════════════════════════════════════════════════════════════════════════
# 500: Database
# ══════════════════════════════════════════════════════════════════════════


class DatabaseError(TripTrackError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Detailed
        error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LastMessageUpdateError(DatabaseError):
    """
    The second phase of sending a message failed.

    The message row was written (phase 1) but the conversation's
    last-message pointer could not be moved (phase 2). Both writes share
    the request transaction, so the session rollback discards the message.
    """

    def __init__(self, conversation_id: str, message_id: str):
        super().__init__(
            message="Message could not be delivered. Please try again.",
            context={"conversation_id": conversation_id, "message_id": message_id},
        )
        self.conversation_id = conversation_id
        self.message_id = message_id
