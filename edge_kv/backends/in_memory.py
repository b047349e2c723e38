"""In-memory backend implementation."""

from __future__ import annotations

import asyncio
from typing import override

from edge_kv.glob import MATCH_ALL, glob_match

from .protocol import DEFAULT_SCAN_COUNT, TERMINAL_CURSOR, Backend, Value, to_bytes, validate_count


class InMemoryAsyncBackend(Backend):
    """Process-local backend used as the unconditional fallback.

    Keys enumerate in insertion order. ``scan`` cursors are plain decimal
    offsets into the filtered key list, so the traversal reflects writes made
    between pages.
    """

    name = "in-memory"

    def __init__(self) -> None:
        super().__init__()
        self._store: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    @override
    async def get(self, key: str) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        async with self._lock:
            return self._store.get(key)

    @override
    async def set(self, key: str, value: Value) -> None:
        """Store raw value for key."""
        data = to_bytes(value)
        async with self._lock:
            self._store[key] = data

    @override
    async def exists(self, key: str) -> bool:
        """Return True when key is present."""
        async with self._lock:
            return key in self._store

    @override
    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = MATCH_ALL,
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next offset cursor and one page of matching keys."""
        count = validate_count(count)
        raw_cursor = str(cursor)
        start = int(raw_cursor) if raw_cursor.isdigit() else 0
        async with self._lock:
            matching = [key for key in self._store if glob_match(match, key)]

        end = min(start + count, len(matching))
        next_cursor = str(end) if end < len(matching) else TERMINAL_CURSOR
        return next_cursor, matching[start:end]

    @override
    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys beginning with prefix in insertion order."""
        async with self._lock:
            return [key for key in self._store if key.startswith(prefix)]

    @override
    async def delete(self, key: str) -> None:
        """Delete key if present."""
        async with self._lock:
            _ = self._store.pop(key, None)

    @override
    async def close(self) -> None:
        """Release backend resources."""
        return
