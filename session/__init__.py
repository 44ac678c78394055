"""
Session persistence backed by Redis.

This module provides the SessionStore contract expected by web session
layers and a Redis implementation that stores each session under
``prefix + session_id`` with an expiry derived from the session cookie.
"""

from session.store import SessionStore
from session.redis_store import RedisSessionStore, CONNECT_EVENT, DISCONNECT_EVENT
from session.serializer import JSONSerializer, Serializer, as_serializer
from session.ttl import ONE_DAY, get_ttl

__all__ = [
    "SessionStore",
    "RedisSessionStore",
    "CONNECT_EVENT",
    "DISCONNECT_EVENT",
    "JSONSerializer",
    "Serializer",
    "as_serializer",
    "ONE_DAY",
    "get_ttl",
]
