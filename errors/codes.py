"""
Error code catalog for the session store.

This module defines the error codes raised by the session store, covering
backend (Redis) failures, serialization failures of stored records,
and internal errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.

    Each error code maps to the HTTP status code a hosting web application
    should answer with when the error escapes a request handler:
    - Backend errors (5xx): Redis unreachable, command rejected, auth failed
    - Data errors (5xx): A stored session record could not be encoded/decoded
    - Internal errors (5xx): Anything unexpected
    """

    # Backend errors (5xx)
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Redis unavailable or rejected the command (HTTP 503)"""

    # Data errors (5xx)
    SESSION_SERIALIZATION_ERROR = "SESSION_SERIALIZATION_ERROR"
    """Session record could not be encoded or decoded (HTTP 500)"""

    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.SESSION_SERIALIZATION_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
