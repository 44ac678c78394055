"""
Session store abstraction.

This module defines the contract a web framework's session layer expects
from a storage backend: load, save, destroy and touch a session record
identified by an opaque session ID.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class SessionStore(ABC):
    """
    Abstract base class for session storage backends.

    Implementations keep no per-session state in process; the backing store
    is the only source of truth. All methods are async to support
    non-blocking I/O with the external store.

    Errors are reported by raising:
    - StoreError: the backend failed (connectivity, rejected command)
    - SerializationError: a record could not be encoded or decoded
    A session that does not exist is not an error.
    """

    @abstractmethod
    async def load(self, session_id: str) -> Optional[Any]:
        """
        Retrieve a session record by session ID.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            The decoded session record, or None if the session never existed
            or has expired.

        Raises:
            StoreError: If the backend reports a failure.
            SerializationError: If the stored value cannot be decoded.
        """

    @abstractmethod
    async def save(self, session_id: str, record: Any) -> None:
        """
        Store a session record, replacing any previous value.

        Args:
            session_id: Unique identifier for the session.
            record: The session record. Its ``cookie.maxAge`` (milliseconds)
                drives the expiry unless the store overrides it.

        Raises:
            SerializationError: If the record cannot be encoded. Nothing is
                written in that case.
            StoreError: If the backend reports a failure.
        """

    @abstractmethod
    async def destroy(self, session_id: str) -> int:
        """
        Delete a session.

        This operation is idempotent - destroying a session that does not
        exist is not an error.

        Returns:
            The number of records removed (0 or 1).

        Raises:
            StoreError: If the backend reports a failure.
        """

    @abstractmethod
    async def touch(self, session_id: str, record: Any) -> Optional[bool]:
        """
        Extend the lifetime of a session without rewriting its value.

        Args:
            session_id: Unique identifier for the session.
            record: The session record the new lifetime is derived from.

        Returns:
            The backend's reply to the refresh, or None when the store does
            not expire sessions at all.

        Raises:
            StoreError: If the backend reports a failure.
        """

    async def health_check(self) -> bool:
        """
        Check connectivity of the backing store.

        Returns:
            True if the store is healthy and accessible, False otherwise.
            Never raises.
        """
        return True
