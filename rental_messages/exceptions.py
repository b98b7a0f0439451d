"""Domain exceptions for the messaging service."""
from typing import Any, Dict, Optional


class MessagingError(Exception):
    """Base exception for the messaging service."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class MalformedMessageError(MessagingError):
    """Raised when a message does not involve the querying user."""

    def __init__(self, message_id: Any, user_id: str):
        message = f"Message '{message_id}' does not involve user '{user_id}'"
        super().__init__(message, "MALFORMED_MESSAGE", {"message_id": message_id, "user_id": user_id})


class NotFoundError(MessagingError):
    """Raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class ForbiddenError(MessagingError):
    """Raised when the current user may not act on a resource."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "FORBIDDEN", details)
