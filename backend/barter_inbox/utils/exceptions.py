"""
Custom business exceptions for the inbox API.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across all inbox endpoints
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class InboxSessionNotFoundException(BusinessException):
    """Raised when an inbox session is unknown or already signed out."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Inbox session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id}
        )


class ConversationNotFoundException(BusinessException):
    """Raised when a conversation id is not in the current conversation list."""

    def __init__(self, conversation_id: str):
        super().__init__(
            message=f"Conversation not found: {conversation_id}",
            code="CONVERSATION_NOT_FOUND",
            details={"conversation_id": conversation_id}
        )


class ValidationException(BusinessException):
    """Raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )


class MessageValidationException(ValidationException):
    """Raised when a message is rejected before reaching the marketplace."""

    def __init__(self, message: str, field: str):
        super().__init__(
            message=message,
            field_errors=[{"field": field, "message": message}]
        )
        self.code = "MESSAGE_REJECTED"
        self.field = field
