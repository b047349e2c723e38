"""Backend interface definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


TERMINAL_CURSOR = "0"
DEFAULT_SCAN_COUNT = 10

Value = bytes | bytearray | memoryview | Iterable[int]


def to_bytes(value: Any) -> bytes:
    """Normalize a backend or caller supplied value to ``bytes``.

    Strings are treated as UTF-8 text, which is how Redis-style services hand
    back values stored without an explicit binary type.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode()
    msg = f"cannot store value of type {type(value).__name__} as bytes"
    if not isinstance(value, Iterable):
        raise TypeError(msg)
    try:
        return bytes(value)
    except (TypeError, ValueError) as error:
        raise TypeError(msg) from error


def validate_count(count: int) -> int:
    """Return ``count`` when it is a usable scan page size."""
    if count < 1:
        msg = f"scan count must be a positive integer, got {count}"
        raise ValueError(msg)
    return count


class Backend(ABC):
    """Async key-value backend interface."""

    name: str = "backend"

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""

    @abstractmethod
    async def set(self, key: str, value: Value) -> None:
        """Store raw value for key, overwriting any previous value."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return True when key is present."""

    @abstractmethod
    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = "*",
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next cursor and one page of keys matching ``match``."""

    @abstractmethod
    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys beginning with prefix."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key if present."""

    @abstractmethod
    async def close(self) -> None:
        """Close any backend resources."""
