"""
Error handling module for the session store.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException base class, StoreError and SerializationError
- Error response model and exception handlers for FastAPI integration
"""

from errors.codes import ErrorCode
from errors.exceptions import AppException, SerializationError, StoreError
from errors.handlers import (
    ErrorResponse,
    handle_app_exception,
    handle_unexpected_exception,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "StoreError",
    "SerializationError",
    "ErrorResponse",
    "handle_app_exception",
    "handle_unexpected_exception",
    "register_exception_handlers",
]
