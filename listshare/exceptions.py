"""Domain errors raised by the core services.

Each error carries the HTTP status the API surfaces it with, so routers can
let them propagate and a single exception handler renders them.
"""

from fastapi import status

INVALID_INVITE_MESSAGE = "Invalid or expired invite link"


class ListShareError(Exception):
    """Base class for errors with a user-facing message."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Snake-case error code derived from the class name."""
        name = type(self).__name__
        return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


class Unauthenticated(ListShareError):
    """No valid session for an operation that requires one."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Unauthorized(ListShareError):
    """Authenticated, but the role is not sufficient."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to do that"


class InvalidArgument(ListShareError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid argument"


class NotFound(ListShareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ListShareError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InvalidInvite(ListShareError):
    """Unknown invite token."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = INVALID_INVITE_MESSAGE


class InviteExpired(InvalidInvite):
    """Invite link past its expiry.

    Rendered exactly like an unknown token so callers cannot tell which
    tokens ever existed.
    """

    @property
    def code(self) -> str:
        return "invalid_invite"


class InviteExhausted(ListShareError):
    status_code = status.HTTP_410_GONE
    default_message = "This invite link has reached its maximum uses"
