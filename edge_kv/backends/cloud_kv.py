"""Redis-compatible cloud KV backend implementation."""

from __future__ import annotations

import logging
import re
from inspect import isawaitable
from typing import Any, override
from urllib.parse import urlsplit


try:
    import redis.asyncio as redis_async
except ImportError:  # pragma: no cover - exercised when dependency is absent
    redis_async = None

from edge_kv.glob import MATCH_ALL

from .protocol import DEFAULT_SCAN_COUNT, TERMINAL_CURSOR, Backend, Value, to_bytes, validate_count


logger = logging.getLogger(__name__)

_REST_SCHEMES = {"http", "https"}
_DEFAULT_TLS_PORT = 6379
_REDIS_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _normalize_key(key: str | bytes) -> str:
    if isinstance(key, bytes):
        return key.decode()
    return key


def _normalize_value(value: Any) -> bytes | None:
    if value is None:
        return None
    return to_bytes(value)


def redis_pattern_for(match: str) -> str:
    """Return a Redis ``MATCH`` pattern in which only ``*`` is a wildcard."""
    return MATCH_ALL.join(_REDIS_GLOB_SPECIAL.sub(r"\\\1", part) for part in match.split(MATCH_ALL))


def redis_url_for(endpoint: str) -> str:
    """Return a Redis protocol URL for a KV endpoint.

    Hosted KV services publish an ``https://`` REST endpoint; the same host
    accepts TLS Redis connections, so REST URLs are rewritten to ``rediss://``.
    """
    parts = urlsplit(endpoint)
    if parts.scheme not in _REST_SCHEMES:
        return endpoint
    port = parts.port or _DEFAULT_TLS_PORT
    return f"rediss://{parts.hostname}:{port}"


class CloudKVBackend(Backend):
    """Cloud KV backend speaking the Redis protocol through ``redis.asyncio``.

    Cursor scanning is native: canonical cursors are the decimal form of the
    server's ``SCAN`` cursor.
    """

    name = "cloud-kv"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        token: str | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        """Create a backend from an endpoint and credential, or an injected client.

        Parameters
        ----------
        url
            KV endpoint. ``http(s)`` REST endpoints are mapped to ``rediss://``.
        token
            Access credential sent as the connection password.
        client
            Optional injected async client with
            ``get/set/exists/scan/scan_iter/delete/aclose`` API.
        """
        super().__init__()
        self._url = url
        if client is not None:
            self._client = client
            return

        if redis_async is None:
            msg = "redis dependency is required for CloudKVBackend; install with `pip install redis`"
            raise RuntimeError(msg)

        self._client = redis_async.from_url(redis_url_for(url), password=token or None)

    @override
    async def get(self, key: str) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        return _normalize_value(await self._client.get(key))

    @override
    async def set(self, key: str, value: Value) -> None:
        """Store raw value for key."""
        await self._client.set(key, to_bytes(value))

    @override
    async def exists(self, key: str) -> bool:
        """Return True when key is present, without transferring its value."""
        return int(await self._client.exists(key)) > 0

    @override
    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = MATCH_ALL,
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next native cursor and one page of matching keys."""
        count = validate_count(count)
        raw_cursor = str(cursor)
        if not raw_cursor.isdigit():
            logger.warning("Cursor %r was not issued by the cloud KV backend; ending traversal", raw_cursor)
            return TERMINAL_CURSOR, []

        pattern = redis_pattern_for(match)
        next_cursor, keys = await self._client.scan(cursor=int(raw_cursor), match=pattern, count=count)
        return str(int(next_cursor)), [_normalize_key(key) for key in keys]

    @override
    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys beginning with prefix."""
        escaped = _REDIS_GLOB_SPECIAL.sub(r"\\\1", prefix)
        keys: list[str] = []
        seen: set[str] = set()
        async for key in self._client.scan_iter(match=f"{escaped}*"):
            normalized = _normalize_key(key)
            # SCAN may return a key more than once
            if normalized not in seen:
                seen.add(normalized)
                keys.append(normalized)
        return keys

    @override
    async def delete(self, key: str) -> None:
        """Delete key if present."""
        await self._client.delete(key)

    @override
    async def close(self) -> None:
        """Release backend resources."""
        close_method = getattr(self._client, "aclose", None)
        if close_method is None:
            close_method = getattr(self._client, "close", None)
        if close_method is None:
            return

        maybe_awaitable = close_method()
        if isawaitable(maybe_awaitable):
            await maybe_awaitable
