"""Cursor pagination emulated on top of full or prefix key listings."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from edge_kv.glob import MATCH_ALL, glob_match, literal_prefix

from .protocol import DEFAULT_SCAN_COUNT, TERMINAL_CURSOR, validate_count


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)

_SESSION_PREFIX = "__scan_"
_CURSOR_SEP = ":"
DEFAULT_MAX_SESSIONS = 256


class PaginationEmulator:
    """Serve ``scan`` pages from point-in-time snapshots of a key listing.

    The first call of a traversal lists the matching keys once and caches the
    result as a scan session. Continuation cursors have the form
    ``<session_id>:<offset>`` and slice that cached list. A session is dropped
    as soon as the terminal cursor ``"0"`` is handed back, so its lifetime never
    exceeds one traversal. Traversals abandoned before the end are bounded by
    ``max_sessions``: opening one more evicts the least recently read, whose cursor then
    ends with an empty page. Sessions are process-local and not persisted.

    Parameters
    ----------
    list_keys
        Coroutine function returning every key that starts with a prefix.
    max_sessions
        Upper bound on live sessions. Defaults to 256.
    """

    def __init__(
        self,
        list_keys: Callable[[str], Awaitable[list[str]]],
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        super().__init__()
        if max_sessions < 1:
            msg = f"max_sessions must be a positive integer, got {max_sessions}"
            raise ValueError(msg)
        self._list_keys = list_keys
        self._max_sessions = max_sessions
        self._sessions: dict[str, tuple[str, ...]] = {}

    @property
    def active_sessions(self) -> int:
        """Number of traversals that have not reached the terminal cursor."""
        return len(self._sessions)

    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = MATCH_ALL,
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next cursor and up to ``count`` keys matching ``match``."""
        count = validate_count(count)
        if str(cursor) == TERMINAL_CURSOR:
            return await self._start(match, count)
        return self._continue(str(cursor), count)

    async def _start(self, match: str, count: int) -> tuple[str, list[str]]:
        prefix = literal_prefix(match)
        if prefix is not None:
            keys = await self._list_keys(prefix)
        else:
            keys = [key for key in await self._list_keys("") if glob_match(match, key)]

        if len(keys) <= count:
            return TERMINAL_CURSOR, list(keys)

        session_id = f"{_SESSION_PREFIX}{uuid.uuid4().hex}"
        while len(self._sessions) >= self._max_sessions:
            evicted = next(iter(self._sessions))
            del self._sessions[evicted]
            logger.warning("Evicted abandoned scan session %s", evicted)
        self._sessions[session_id] = tuple(keys)
        logger.debug("Opened scan session %s with %d keys for %r", session_id, len(keys), match)
        return f"{session_id}{_CURSOR_SEP}{count}", list(keys[:count])

    def _continue(self, cursor: str, count: int) -> tuple[str, list[str]]:
        session_id, _, raw_offset = cursor.rpartition(_CURSOR_SEP)
        keys = self._sessions.get(session_id)
        if keys is None or not raw_offset.isdigit():
            logger.warning("Unknown or expired scan cursor %r; ending traversal", cursor)
            _ = self._sessions.pop(session_id, None)
            return TERMINAL_CURSOR, []

        start = int(raw_offset)
        end = min(start + count, len(keys))
        batch = list(keys[start:end])
        if end < len(keys):
            self._sessions[session_id] = self._sessions.pop(session_id)
            return f"{session_id}{_CURSOR_SEP}{end}", batch

        del self._sessions[session_id]
        logger.debug("Closed scan session %s", session_id)
        return TERMINAL_CURSOR, batch
