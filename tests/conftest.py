"""
Shared pytest fixtures and configuration for all tests.
"""
import os
import time
from typing import Any, Dict, Optional, Tuple
from unittest.mock import MagicMock, AsyncMock

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class InMemoryRedis:
    """
    Dict-backed stand-in for a redis.asyncio client.

    Implements the handful of commands the session store issues, with
    redis-py's reply types, and records every call in ``commands``.
    """

    def __init__(self):
        self.data: Dict[str, bytes] = {}
        self.expiry: Dict[str, Optional[int]] = {}
        self.commands: list[Tuple[Any, ...]] = []
        self.connection_pool = MagicMock()
        self.connection_pool.connection_kwargs = {}
        self.connection_pool.disconnect = AsyncMock()
        self.closed = False

    @staticmethod
    def _to_bytes(value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    async def ping(self) -> bool:
        self.commands.append(("PING",))
        return True

    async def get(self, key: str) -> Optional[bytes]:
        self.commands.append(("GET", key))
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> bool:
        self.commands.append(("SET", key, value))
        self.data[key] = self._to_bytes(value)
        self.expiry[key] = None
        return True

    async def setex(self, key: str, ttl: int, value: Any) -> bool:
        self.commands.append(("SETEX", key, ttl, value))
        self.data[key] = self._to_bytes(value)
        self.expiry[key] = ttl
        return True

    async def delete(self, key: str) -> int:
        self.commands.append(("DEL", key))
        self.expiry.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def expire(self, key: str, ttl: int) -> bool:
        self.commands.append(("EXPIRE", key, ttl))
        if key not in self.data:
            return False
        self.expiry[key] = ttl
        return True

    async def aclose(self) -> None:
        self.closed = True

    def command_names(self) -> list[str]:
        return [command[0] for command in self.commands]


class RecordingMetrics:
    """Metrics recorder that keeps every recorded value."""

    def __init__(self):
        self.metrics: list[Tuple[str, float, Optional[Dict[str, str]]]] = []

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        self.metrics.append((name, value, tags))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.metrics]


@pytest.fixture(autouse=True)
def clean_store_environment(monkeypatch):
    """Keep SESSION_STORE_* variables of the host from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("SESSION_STORE_") or name == "ENVIRONMENT":
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.expire = AsyncMock(return_value=True)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    mock.connection_pool.connection_kwargs = {}
    mock.connection_pool.disconnect = AsyncMock()
    return mock


@pytest.fixture
def memory_redis() -> InMemoryRedis:
    """Create a dict-backed Redis double."""
    return InMemoryRedis()


@pytest.fixture
def recording_metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def sample_session() -> dict:
    """Session record as produced by a cookie-based session layer."""
    return {
        "cookie": {
            "originalMaxAge": 5000,
            "maxAge": 5000,
            "httpOnly": True,
            "path": "/",
        },
        "user": "bob",
        "issued_at": int(time.time()),
    }
