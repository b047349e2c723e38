"""Caller-facing storage API that degrades instead of failing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from edge_kv.backends.protocol import DEFAULT_SCAN_COUNT, TERMINAL_CURSOR, Value, validate_count
from edge_kv.errors import OperationError
from edge_kv.glob import MATCH_ALL
from edge_kv.selector import BackendSelector, default_selector


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from edge_kv.backends import Backend


logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class Storage:
    """Canonical key/value contract over whichever backend was selected.

    Failures of individual operations are logged and replaced by a safe
    result: ``get`` returns None, ``exists`` returns False, ``scan`` and
    ``list_keys`` return nothing, and ``set``/``delete`` are best effort.
    Invalid scan page sizes are caller errors and still raise ``ValueError``.
    """

    def __init__(self, selector: BackendSelector | None = None) -> None:
        super().__init__()
        self._selector = selector if selector is not None else default_selector()

    @property
    def selector(self) -> BackendSelector:
        """Selector providing the backend instance."""
        return self._selector

    async def backend(self) -> Backend:
        """Return the selected backend."""
        return await self._selector.get_storage()

    async def _run(
        self,
        operation: str,
        target: str,
        call: Callable[[Backend], Awaitable[_T]],
        fallback: _T,
    ) -> _T:
        backend = await self._selector.get_storage()
        try:
            return await call(backend)
        except Exception as error:
            failure = OperationError(operation, target, error)
            logger.exception("KV %s (%s backend)", failure, backend.name)
            return fallback

    async def get(self, key: str) -> bytes | None:
        """Return the value stored at key, or None."""
        return await self._run("get", key, lambda backend: backend.get(key), None)

    async def set(self, key: str, value: Value) -> None:
        """Store value at key."""
        await self._run("set", key, lambda backend: backend.set(key, value), None)

    async def exists(self, key: str) -> bool:
        """Return True when key holds a value."""
        return await self._run("exists", key, lambda backend: backend.exists(key), False)

    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = MATCH_ALL,
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next cursor and one page of keys matching ``match``.

        Start a traversal with ``"0"`` and pass each returned cursor back
        until ``"0"`` is returned again.
        """
        count = validate_count(count)
        empty: tuple[str, list[str]] = (TERMINAL_CURSOR, [])
        return await self._run(
            "scan",
            match,
            lambda backend: backend.scan(cursor, match=match, count=count),
            empty,
        )

    async def list_keys(self, prefix: str) -> list[str]:
        """Return every key beginning with prefix."""
        empty: list[str] = []
        return await self._run("list", prefix, lambda backend: backend.list_keys(prefix), empty)

    async def delete(self, key: str) -> None:
        """Delete key; a missing key is not an error."""
        await self._run("del", key, lambda backend: backend.delete(key), None)

    async def iter_keys(self, match: str = MATCH_ALL, count: int = 100) -> list[str]:
        """Follow ``scan`` cursors to completion and return every matching key."""
        keys: list[str] = []
        cursor = TERMINAL_CURSOR
        while True:
            cursor, page = await self.scan(cursor, match=match, count=count)
            keys.extend(page)
            if cursor == TERMINAL_CURSOR:
                return keys

    async def close(self) -> None:
        """Release the selected backend."""
        await self._selector.close()
