"""
Exception classes for the session store.

This module provides the AppException base class and the two failure kinds
a session store operation can surface:

- StoreError: Redis reported a transport or backend failure
- SerializationError: a session record could not be encoded or decoded

A missing session is never an exception; load() returns None for it.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all session store errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code a hosting app should return
    - details: Optional additional context (e.g., the Redis key involved)

    Example:
        raise AppException(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message="Redis GET failed",
            details={"key": "sess:abc", "operation": "get"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class StoreError(AppException):
    """
    Redis reported a failure: connection lost, command rejected, auth failed.

    The originating redis-py exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str = "Session store unavailable",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message=message,
            details=details
        )


class SerializationError(AppException):
    """
    A session record could not be encoded, or a stored value could not be decoded.

    A corrupt stored value raises this on load; it is never reported as a
    missing session.
    """

    def __init__(
        self,
        message: str = "Session record could not be serialized",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.SESSION_SERIALIZATION_ERROR,
            message=message,
            details=details
        )


# Convenience factory functions for common error types

def store_error(
    operation: str,
    key: str,
    cause: Optional[BaseException] = None
) -> StoreError:
    """Create a StoreError for a failed Redis command."""
    details: dict[str, Any] = {"operation": operation, "key": key}
    if cause is not None:
        details["reason"] = str(cause)
    return StoreError(
        message=f"Redis {operation.upper()} failed",
        details=details
    )


def serialization_error(
    direction: str,
    key: str,
    cause: Optional[BaseException] = None
) -> SerializationError:
    """Create a SerializationError for a failed encode or decode."""
    details: dict[str, Any] = {"direction": direction, "key": key}
    if cause is not None:
        details["reason"] = str(cause)
    return SerializationError(
        message=f"Failed to {direction} session record",
        details=details
    )
