"""
Redis-based session store implementation.

Each operation maps to a single Redis command on the key ``prefix + session_id``:

    load     -> GET
    save     -> SETEX (or SET when TTLs are disabled)
    destroy  -> DEL
    touch    -> EXPIRE (nothing when TTLs are disabled)

Command latencies are reported to an injected metrics recorder as
``session.redis.<command>`` in milliseconds.
"""

import contextlib
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from config.settings import DEFAULT_HOST, DEFAULT_PORT, Settings
from errors.exceptions import StoreError, serialization_error, store_error
from session.serializer import Serializer, as_serializer
from session.store import SessionStore
from session.ttl import get_ttl
from telemetry.service import MetricsRecorder

logger = logging.getLogger(__name__)

CONNECT_EVENT = "connect"
DISCONNECT_EVENT = "disconnect"

Listener = Callable[..., Any]

# connect-redis option names accepted alongside the Settings field names
OPTION_ALIASES = {
    "disableTTL": "disable_ttl",
    "pass": "password",
}


def _resolve_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map keyword options onto Settings field names.

    Raises:
        TypeError: If an option is unknown or given under two names.
    """
    resolved: Dict[str, Any] = {}
    for name, value in options.items():
        field_name = OPTION_ALIASES.get(name, name)
        if field_name not in Settings.model_fields:
            raise TypeError(f"Unknown session store option: {name!r}")
        if field_name in resolved:
            raise TypeError(f"Session store option {field_name!r} given more than once")
        resolved[field_name] = value
    return resolved


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    The client is resolved once, in this order:
    1. an already constructed ``client`` passed by the caller
    2. ``socket``: a unix domain socket path
    3. ``url``, else ``host``/``port``
    4. the redis-py defaults, with ``client_options`` passed through

    ``connect()`` must be awaited before the first operation. It verifies
    the connection and authentication; a failure there is raised and the
    store stays unusable.

    Usage:
        store = RedisSessionStore(prefix="myapp:sess:", ttl=3600)
        await store.connect()
        await store.save("abc", {"cookie": {"maxAge": 60000}, "user": "bob"})
        record = await store.load("abc")

    Attributes:
        settings: The resolved, immutable store settings
        client: The redis.asyncio client all commands are issued on
        serializer: Encodes records to strings and back
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[redis.Redis] = None,
        serializer: Any = None,
        metrics: Optional[MetricsRecorder] = None,
        **options: Any
    ):
        """
        Initialize the Redis session store.

        Args:
            settings: Store settings. When omitted they are built from
                ``options`` and ``SESSION_STORE_*`` environment variables.
            client: An existing redis.asyncio client to use instead of
                creating one.
            serializer: Serializer for session records. Defaults to JSON.
            metrics: Recorder receiving command latencies. A TelemetryService
                additionally wraps each command in a tracing span.
            **options: Settings fields (prefix, ttl, disable_ttl, url, ...).
                ``disableTTL`` and ``pass`` are accepted as aliases.

        Raises:
            TypeError: If both settings and options are given, an option is
                unknown, or the serializer is not usable.
        """
        if settings is not None and options:
            raise TypeError("Pass either settings or keyword options, not both")

        if settings is None:
            settings = Settings(**_resolve_options(options))
        self.settings = settings
        self.serializer: Serializer = as_serializer(serializer)
        self._metrics = metrics
        self._listeners: Dict[str, List[Listener]] = {}
        self._ready = False
        self._connected = False

        if client is not None:
            self.client = client
            self._client_supplied = True
        else:
            self.client = self._create_client()
            self._client_supplied = False

    def _create_client(self) -> redis.Redis:
        """Build a client from settings. No connection is opened yet."""
        settings = self.settings
        kwargs: Dict[str, Any] = dict(settings.client_options)

        # AUTH and SELECT are sent by redis-py on every new connection,
        # so reconnects keep the configured database and credentials.
        if settings.password is not None:
            kwargs.setdefault("password", settings.password)
        if settings.db is not None:
            kwargs.setdefault("db", settings.db)
        if settings.socket_timeout is not None:
            kwargs.setdefault("socket_timeout", settings.socket_timeout)
        kwargs.setdefault("retry", Retry(NoBackoff(), settings.max_attempts - 1))

        if settings.socket:
            logger.debug("Creating Redis client on socket %s", settings.socket)
            return redis.Redis(unix_socket_path=settings.socket, **kwargs)

        if settings.url:
            logger.debug("Creating Redis client from URL")
            return redis.from_url(settings.url, **kwargs)

        if settings.host or settings.port:
            host = settings.host or DEFAULT_HOST
            port = settings.port or DEFAULT_PORT
            logger.debug("Creating Redis client for %s:%s", host, port)
            return redis.Redis(host=host, port=port, **kwargs)

        return redis.Redis(**kwargs)

    async def connect(self) -> None:
        """
        Finish setting up the client and verify it can serve commands.

        For a caller-supplied client the configured password and database are
        written into its pool's connection parameters and pooled connections
        are dropped, so every connection made from now on authenticates and
        selects the database.

        Raises:
            StoreError: If Redis cannot be reached or rejects authentication.
        """
        settings = self.settings

        if self._client_supplied and (settings.password is not None or settings.db is not None):
            pool = self.client.connection_pool
            if settings.password is not None:
                pool.connection_kwargs["password"] = settings.password
            if settings.db is not None:
                pool.connection_kwargs["db"] = settings.db
            await pool.disconnect()

        try:
            await self.client.ping()
        except RedisError as e:
            logger.error(
                "Failed to connect to Redis",
                extra={"extra_data": {"error": str(e), "error_type": type(e).__name__}}
            )
            raise StoreError(
                message="Failed to connect to Redis",
                details={"operation": "connect", "reason": str(e)}
            ) from e

        self._ready = True
        self._connected = True
        logger.info(
            "Connected to Redis",
            extra={"extra_data": {"prefix": settings.prefix, "db": settings.db}}
        )
        self._emit(CONNECT_EVENT)

    async def disconnect(self) -> None:
        """
        Release the client.

        The client is closed unless the store was configured with ``unref``,
        in which case it is left open for its owner or process teardown.
        A client the store created itself is closed even if ``connect()``
        never succeeded; a caller-supplied one only after a successful
        ``connect()``.
        """
        was_ready = self._ready
        self._ready = False
        self._connected = False

        if self.settings.unref:
            logger.debug("Leaving Redis client open (unref)")
            return

        if was_ready or not self._client_supplied:
            await self.client.aclose()

    async def __aenter__(self) -> "RedisSessionStore":
        try:
            await self.connect()
        except StoreError:
            await self.disconnect()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener for a lifecycle event.

        ``connect`` listeners are called with no arguments when the store
        connects and whenever a command succeeds after a transport failure.
        ``disconnect`` listeners are called with the redis-py exception each
        time a command fails at the transport level.
        """
        if event not in (CONNECT_EVENT, DISCONNECT_EVENT):
            raise ValueError(f"Unknown event: {event!r}")
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(*args)
            except Exception:
                logger.exception("Session store %s listener failed", event)

    def _key(self, session_id: str) -> str:
        """Generate the Redis key for a session."""
        return f"{self.settings.prefix}{session_id}"

    def _ensure_connected(self) -> None:
        if not self._ready:
            raise RuntimeError("Redis session store not connected. Call connect() first.")

    def _span(self, command: str):
        create_span = getattr(self._metrics, "create_external_service_span", None)
        if create_span is None:
            return contextlib.nullcontext()
        return create_span(
            "redis",
            command,
            {"db.system": "redis", "db.redis.key_prefix": self.settings.prefix}
        )

    def _record_latency(self, command: str, started: float, success: bool) -> None:
        if self._metrics is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000
        self._metrics.record_metric(
            f"session.redis.{command}",
            elapsed_ms,
            tags={"command": command, "status": "ok" if success else "error"}
        )

    async def _execute(self, command: str, key: str, method: Callable[..., Any], *args: Any) -> Any:
        """
        Await one Redis command, timing it and translating failures.

        Raises:
            StoreError: Wrapping any redis-py error.
        """
        started = time.perf_counter()
        try:
            with self._span(command):
                result = await method(*args)
        except RedisError as e:
            self._record_latency(command, started, success=False)
            if isinstance(e, (RedisConnectionError, RedisTimeoutError)):
                logger.warning(
                    "Redis returned err",
                    extra={"extra_data": {"command": command, "error": str(e)}}
                )
                self._connected = False
                self._emit(DISCONNECT_EVENT, e)
            raise store_error(command, key, e) from e

        self._record_latency(command, started, success=True)
        if not self._connected:
            self._connected = True
            logger.info("Redis connection restored")
            self._emit(CONNECT_EVENT)
        return result

    async def load(self, session_id: str) -> Optional[Any]:
        """
        Retrieve a session record by session ID.

        Returns:
            The decoded record, or None if the key does not exist.

        Raises:
            StoreError: If Redis reports a failure.
            SerializationError: If the stored value cannot be decoded.
        """
        self._ensure_connected()
        key = self._key(session_id)

        logger.debug('GET "%s"', key)
        data = await self._execute("get", key, self.client.get, key)
        if data is None:
            return None

        try:
            if isinstance(data, (bytes, bytearray)):
                data = data.decode("utf-8")
            return self.serializer.decode(data)
        except Exception as e:
            raise serialization_error("decode", key, e) from e

    async def save(self, session_id: str, record: Any) -> None:
        """
        Store a session record.

        The record is encoded before anything is sent. With TTLs enabled the
        value and its expiry are written atomically with SETEX; a record whose
        cookie has already expired is deleted instead of written.

        Raises:
            SerializationError: If the record cannot be encoded.
            StoreError: If Redis reports a failure.
        """
        self._ensure_connected()
        key = self._key(session_id)

        try:
            payload = self.serializer.encode(record)
        except Exception as e:
            raise serialization_error("encode", key, e) from e

        if self.settings.disable_ttl:
            logger.debug('SET "%s"', key)
            await self._execute("set", key, self.client.set, key, payload)
            return

        ttl = get_ttl(record, self.settings.ttl)
        if ttl <= 0:
            logger.debug('SETEX "%s" skipped, cookie expired', key)
            await self._execute("del", key, self.client.delete, key)
            return

        logger.debug('SETEX "%s" ttl:%s', key, ttl)
        await self._execute("setex", key, self.client.setex, key, ttl, payload)

    async def destroy(self, session_id: str) -> int:
        """
        Delete a session. Deleting a missing session returns 0.

        Raises:
            StoreError: If Redis reports a failure.
        """
        self._ensure_connected()
        key = self._key(session_id)

        logger.debug('DEL "%s"', key)
        return await self._execute("del", key, self.client.delete, key)

    async def touch(self, session_id: str, record: Any) -> Optional[bool]:
        """
        Refresh the expiry of a session without rewriting it.

        Returns:
            None when TTLs are disabled (no command is sent). Otherwise
            Redis' EXPIRE reply, False if the key no longer exists.

        Raises:
            StoreError: If Redis reports a failure.
        """
        self._ensure_connected()
        if self.settings.disable_ttl:
            return None

        key = self._key(session_id)
        ttl = get_ttl(record, self.settings.ttl)

        logger.debug('EXPIRE "%s" ttl:%s', key, ttl)
        return await self._execute("expire", key, self.client.expire, key, ttl)

    async def health_check(self) -> bool:
        """
        Check connectivity and health of Redis.

        Returns:
            True if Redis answers PING, False otherwise. Never raises.
        """
        if not self._ready:
            return False

        try:
            return await self.client.ping() is True
        except RedisError as e:
            logger.warning(
                "Redis health check failed",
                extra={"extra_data": {"error": str(e)}}
            )
            return False
