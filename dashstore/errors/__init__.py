"""
Error taxonomy for dashstore.

Every failure raised by the transport, resource clients and stores is a
DashStoreError carrying a structured code, the HTTP status when one was
received, the underlying cause, and any detail the server sent back.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # Authentication
    UNAUTHENTICATED = "unauthenticated"
    SESSION_EXPIRED = "session_expired"

    # Resource errors
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    SERVER_ERROR = "server_error"

    # Network/Communication errors
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    MALFORMED_RESPONSE = "malformed_response"

    # Programmer errors
    MISSING_IDENTIFIER = "missing_identifier"
    INVALID_CONFIGURATION = "invalid_configuration"


class DashStoreError(Exception):
    """
    Base exception class for all dashstore errors.

    Attributes:
        code: Structured error code
        message: Human readable message (server-provided when available)
        status: HTTP status code, when the error came from a response
        cause: Underlying exception, if any
        details: Extra detail such as field-level validation messages
    """

    default_code = ErrorCode.SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.status = status
        self.cause = cause
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
        }

        if self.status is not None:
            result["status"] = self.status

        if self.details:
            result["details"] = self.details

        if self.cause:
            result["caused_by"] = str(self.cause)

        return result


class Unauthenticated(DashStoreError):
    """Credential missing or expired, or rejected by the server (401/403)."""

    default_code = ErrorCode.UNAUTHENTICATED


class SessionExpired(Unauthenticated):
    """A persisted credential was found past its expiry time."""

    default_code = ErrorCode.SESSION_EXPIRED


class NotFound(DashStoreError):
    """A single-item operation targeted a nonexistent id."""

    default_code = ErrorCode.NOT_FOUND


class ValidationError(DashStoreError):
    """The server (or upload validation) rejected a payload."""

    default_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field_errors: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_errors = field_errors or {}
        if self.field_errors:
            self.details.setdefault("errors", self.field_errors)


class TransportError(DashStoreError):
    """Network failure, timeout or malformed response."""

    default_code = ErrorCode.NETWORK_ERROR


class RequestCancelled(TransportError):
    """The caller cancelled the request before a response arrived."""

    default_code = ErrorCode.CANCELLED


class ConfigurationError(DashStoreError):
    """Programmer error, such as an update invoked without an identifier."""

    default_code = ErrorCode.MISSING_IDENTIFIER


class ResourceError(DashStoreError):
    """Any other non-2xx response."""

    default_code = ErrorCode.SERVER_ERROR


def extract_server_message(body: Any) -> Optional[str]:
    """Pull ``message`` or ``error`` out of a response body."""
    if not isinstance(body, dict):
        return None

    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value

    return None


def error_from_response(status: int, body: Any, fallback: str) -> DashStoreError:
    """
    Map a non-2xx response to the matching error class.

    Args:
        status: HTTP status code
        body: Parsed response body
        fallback: Message used when the server provides none

    Returns:
        DashStoreError subclass instance
    """
    message = extract_server_message(body) or fallback

    if status in (401, 403):
        return Unauthenticated(message, status=status)

    if status == 404:
        return NotFound(message, status=status)

    if status in (400, 409, 422):
        field_errors = body.get("errors") if isinstance(body, dict) else None
        return ValidationError(
            message,
            field_errors=field_errors if isinstance(field_errors, dict) else None,
            status=status,
        )

    return ResourceError(message, status=status)


__all__ = [
    "ErrorCode",
    "DashStoreError",
    "Unauthenticated",
    "SessionExpired",
    "NotFound",
    "ValidationError",
    "TransportError",
    "RequestCancelled",
    "ConfigurationError",
    "ResourceError",
    "extract_server_message",
    "error_from_response",
]
